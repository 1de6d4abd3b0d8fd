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

import logging
import xmlsec

from cryptography import x509
from .CryptoTools import CryptoTools
from .SAMLError import Reason, SignatureError
from .SAMLModel import DS_NS


class SignatureVerifier:
  """ Vérification d'une signature XML (XML-DSig) par xmlsec

  La signature est un élément ds:Signature enfant direct de l'élément signé (Response ou Assertion).
  On exige que la signature porte une unique référence, vers l'identifiant de l'élément qui la contient :
    une signature valide mais portant sur un autre élément du document ne doit pas être acceptée (signature wrapping).

  La clé de vérification est la clé publique du certificat de confiance de l'IdP, jamais le certificat
    éventuellement présent dans le KeyInfo de la signature.

  Versions:
    19/10/2026 version initiale
  """

  def verify(self, signature, certificate:x509.Certificate):
    """ Vérifie une signature

    Args:
      signature: élément lxml ds:Signature
      certificate: certificat de confiance de l'IdP

    Raises:
      SignatureError si la signature ne peut être vérifiée
    """

    signed_el = signature.getparent()
    if signed_el is None:
      raise SignatureError('Signature is not attached to a signed element', reason=Reason.SIGNATURE_INVALID)

    signed_id = signed_el.get('ID')
    if not signed_id:
      raise SignatureError('Signed element has no ID attribute', reason=Reason.SIGNATURE_INVALID)

    references = signature.findall('{'+DS_NS+'}SignedInfo/{'+DS_NS+'}Reference')
    if len(references) != 1:
      raise SignatureError(f"Signature must contain exactly one reference, {len(references)} found", reason=Reason.SIGNATURE_INVALID)
    if references[0].get('URI') != '#'+signed_id:
      raise SignatureError(f"Signature reference {references[0].get('URI')} does not match signed element {signed_id}", reason=Reason.SIGNATURE_INVALID)

    root_el = signature.getroottree().getroot()
    if len(root_el.xpath('//*[@ID=$id]', id=signed_id)) != 1:
      raise SignatureError(f"ID {signed_id} is not unique in document", reason=Reason.SIGNATURE_INVALID)

    try:
      # xmlsec doit savoir que l'attribut ID est un identifiant pour résoudre la référence URI="#..."
      #   https://www.aleksey.com/xmlsec/faq.html (section 3.2)
      xmlsec.tree.add_ids(root_el, ["ID"])

      ctx = xmlsec.SignatureContext()
      ctx.key = xmlsec.Key.from_memory(CryptoTools.certificate_pem(certificate), xmlsec.KeyFormat.CERT_PEM, None)
      ctx.verify(signature)
    except xmlsec.Error as error:
      raise SignatureError('Signature verification failed: '+str(error), reason=Reason.SIGNATURE_INVALID) from error

    logging.info(f"Signature of {signed_el.tag} {signed_id}: OK")
