"""
Copyright 2026 Aduneo

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import base64
import logging
import zlib

import lxml.builder
from datetime import datetime, timezone
from lxml import etree
from .SAMLConfig import IdPConfig, SPConfig
from .SAMLError import EncodingError, MarshallingError, Reason
from .SAMLModel import AuthnRequest, SAML_NS, SAMLP_NS, format_saml_date


"""
  Requête d'authentification SAML (AuthnRequest)

  La requête est construite à partir des configurations SP et IdP, puis transformée pour le binding HTTP-Redirect :
    XML -> UTF-8 -> DEFLATE brut (sans en-tête zlib) -> base64

  L'identifiant de requête est fourni par l'appelant. Il doit être unique dans sa fenêtre de détection de rejeu :
    ce module ne le vérifie pas, c'est à l'appelant de le garantir.
"""


def build_request(request_id:str, sp_config:SPConfig, idp_config:IdPConfig, now:datetime=None) -> AuthnRequest:
  """ Construit une requête d'authentification

  Args:
    request_id: identifiant unique de la requête (attribut ID)
    sp_config: configuration du SP (émetteur et URL ACS)
    idp_config: configuration de l'IdP (destination)
    now: instant d'émission, l'heure courante UTC par défaut

  Returns:
    AuthnRequest

  Raises:
    MarshallingError si l'identifiant est vide
  """

  if not request_id:
    raise MarshallingError("AuthnRequest ID must not be empty", reason=Reason.EMPTY_REQUEST_ID)

  if now is None:
    now = datetime.now(timezone.utc)

  return AuthnRequest(
    id = request_id,
    issue_instant = now,
    issuer = sp_config.entity_id,
    destination = idp_config.login_url,
    assertion_consumer_service_url = sp_config.acs_url,
    )


class RequestMarshaller:
  """ Transforme une AuthnRequest en XML
  """

  def marshal(self, request:AuthnRequest) -> str:
    """ Produit le XML de la requête, sans déclaration XML

    Raises:
      MarshallingError si le XML ne peut être produit (requête incomplète par exemple)
    """

    for field in ('id', 'issuer', 'destination', 'assertion_consumer_service_url'):
      value = getattr(request, field, None)
      if not isinstance(value, str) or value == '':
        raise MarshallingError(f"Can't marshal AuthnRequest: {field} must be a non-empty string, {value!r} found",
          reason=Reason.MARSHALLING_FAILED)

    try:
      samlp = lxml.builder.ElementMaker(namespace=SAMLP_NS, nsmap={'samlp': SAMLP_NS, 'saml': SAML_NS})
      saml = lxml.builder.ElementMaker(namespace=SAML_NS, nsmap={'saml': SAML_NS})

      authn_request = samlp.AuthnRequest(
        saml.Issuer(request.issuer),
        ID = request.id,
        Version = '2.0',
        IssueInstant = format_saml_date(request.issue_instant),
        Destination = request.destination,
        AssertionConsumerServiceURL = request.assertion_consumer_service_url,
        )

      xml = etree.tostring(authn_request, encoding='unicode')

    except (TypeError, ValueError, AttributeError, KeyError) as error:
      raise MarshallingError("Can't marshal AuthnRequest: "+str(error), reason=Reason.MARSHALLING_FAILED) from error

    return xml


def encode_request(request:AuthnRequest, marshaller:RequestMarshaller=None) -> str:
  """ Encode une requête pour le binding HTTP-Redirect

  Args:
    request: requête construite par build_request
    marshaller: objet de sérialisation XML, RequestMarshaller par défaut

  Returns:
    requête compressée (DEFLATE brut) encodée en base64, à placer (URL-encoded) dans le paramètre SAMLRequest

  Raises:
    MarshallingError si le XML ne peut être produit
    EncodingError si la compression échoue

  Versions:
    19/10/2026 version initiale
  """

  if marshaller is None:
    marshaller = RequestMarshaller()

  xml_req = marshaller.marshal(request)
  logging.info("Authentication request:")
  logging.info(xml_req)

  try:
    compress = zlib.compressobj(
      zlib.Z_DEFAULT_COMPRESSION, # level: 0-9
      zlib.DEFLATED,              # method: must be DEFLATED
      -zlib.MAX_WBITS,            # window size in bits, négatif : pas d'en-tête
      zlib.DEF_MEM_LEVEL,
      zlib.Z_DEFAULT_STRATEGY
      )
    deflated_req = compress.compress(xml_req.encode('utf-8'))
    deflated_req += compress.flush()
  except zlib.error as error:
    raise EncodingError("Unable to compress the AuthnRequest: "+str(error), reason=Reason.COMPRESSION_FAILED) from error

  base64_req = base64.b64encode(deflated_req).decode('ascii')
  logging.info("Base64 encoded deflated authentication request:")
  logging.info(base64_req)

  return base64_req
