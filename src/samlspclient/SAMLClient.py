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
import binascii
import logging
import urllib.parse

from datetime import datetime, timedelta, timezone
from .AttributeSet import AttributeSet, extract_attributes
from .AuthnRequest import RequestMarshaller, build_request, encode_request
from .Configuration import Configuration
from .CryptoTools import CryptoTools
from .ResponseParser import ResponseParser
from .ResponseValidator import DEFAULT_SLACK, ResponseValidator
from .SAMLConfig import IdPConfig, SPConfig
from .SAMLError import ConfigurationError, EncodingError, Reason
from .SignatureVerifier import SignatureVerifier


class SAMLClient:
  """ Client SAML agissant pour le compte d'un fournisseur de service (SP)

  Intégration dans une application :
    1. à la connexion, appeler generate_authn_request() (ou generate_redirect_url()) et envoyer
       la requête à l'URL de login de l'IdP
    2. sur l'URL ACS, appeler validate_response() avec le paramètre SAMLResponse reçu en POST :
       en cas de succès, le NameID retourné est l'utilisateur authentifié, ses attributs sont lus
       par get() (toutes les valeurs) ou get_first() (première valeur) de l'AttributeSet

  Toute erreur est une SAMLError (ou une de ses sous-classes) dont l'attribut reason donne le motif.
  Une réponse refusée ne doit jamais être représentée : il faut relancer l'authentification.

  Le client ne conserve aucun état modifiable : il peut être partagé entre threads.

  Versions:
    19/10/2026 version initiale
  """

  def __init__(self, sp_config:SPConfig, idp_config:IdPConfig, slack:int=DEFAULT_SLACK, parser=None, verifier=None, marshaller=None):
    """ Constructeur

    Args:
      sp_config: configuration du SP
      idp_config: configuration de l'IdP, dont le certificat de confiance
      slack: tolérance en secondes appliquée aux comparaisons de dates
      parser: analyseur de réponses, ResponseParser par défaut
      verifier: vérificateur de signatures, SignatureVerifier par défaut
      marshaller: sérialiseur des requêtes, RequestMarshaller par défaut
    """
    self._sp_config = sp_config
    self._idp_config = idp_config
    self._slack = timedelta(seconds=slack)
    self._parser = parser if parser is not None else ResponseParser()
    self._marshaller = marshaller if marshaller is not None else RequestMarshaller()
    self._validator = ResponseValidator(verifier if verifier is not None else SignatureVerifier())


  def from_configuration(conf):
    """ Crée un client à partir d'une configuration lue par Configuration.read_configuration

    Le certificat de l'IdP est donné soit directement (idp/certificate), soit par un fichier
      du dossier de configuration (idp/certificate_file)

    Raises:
      ConfigurationError si un paramètre obligatoire manque, si la tolérance (validation/slack) n'est pas
        un nombre de secondes positif ou nul, ou si le certificat est invalide
    """

    for path in ['sp/entity_id', 'sp/acs_url', 'idp/entity_id', 'idp/login_url']:
      if not conf.get(path):
        raise ConfigurationError('Missing configuration parameter '+path, reason=Reason.MISSING_PARAMETER)

    certificate_text = conf.get('idp/certificate')
    if not certificate_text:
      certificate_file = conf.get('idp/certificate_file')
      if not certificate_file:
        raise ConfigurationError('Missing configuration parameter idp/certificate or idp/certificate_file', reason=Reason.MISSING_PARAMETER)
      certificate_text = Configuration.read_conf_file(conf, certificate_file)

    sp_config = SPConfig(entity_id=conf['sp/entity_id'], acs_url=conf['sp/acs_url'])
    idp_config = IdPConfig(
      entity_id = conf['idp/entity_id'],
      login_url = conf['idp/login_url'],
      certificate = CryptoTools.load_certificate(certificate_text),
      )

    slack = conf.get('validation/slack', DEFAULT_SLACK)
    try:
      if isinstance(slack, bool):
        raise ValueError('boolean given')
      slack = int(slack)
    except (TypeError, ValueError) as error:
      raise ConfigurationError(f"Invalid configuration parameter validation/slack: {slack!r} is not a number of seconds",
        reason=Reason.INVALID_PARAMETER) from error
    if slack < 0:
      raise ConfigurationError(f"Invalid configuration parameter validation/slack: {slack} is negative",
        reason=Reason.INVALID_PARAMETER)

    return SAMLClient(sp_config, idp_config, slack=slack)


  @property
  def sp_config(self) -> SPConfig:
    return self._sp_config


  @property
  def idp_config(self) -> IdPConfig:
    return self._idp_config


  @property
  def slack(self) -> timedelta:
    return self._slack


  def generate_authn_request(self, request_id:str) -> str:
    """ Crée une requête d'authentification pour le binding HTTP-Redirect

    La configuration du SP donne l'émetteur et l'URL ACS, celle de l'IdP la destination.

    Args:
      request_id: identifiant de la requête, unique (ce n'est pas vérifié)

    Returns:
      requête compressée et encodée en base64
    """

    logging.info('Generating AuthnRequest '+str(request_id)+' for IdP '+self._idp_config.entity_id)
    request = build_request(request_id, self._sp_config, self._idp_config)
    return encode_request(request, self._marshaller)


  def generate_redirect_url(self, request_id:str, relay_state:str=None) -> str:
    """ Retourne l'URL de login de l'IdP complétée par la requête (et le relay state s'il est donné)
    """

    url = self._idp_config.login_url
    url += '&' if '?' in url else '?'
    url += 'SAMLRequest=' + urllib.parse.quote_plus(self.generate_authn_request(request_id))
    if relay_state:
      url += '&RelayState=' + urllib.parse.quote_plus(relay_state)
    logging.info('URL: '+url)

    return url


  def validate_response(self, authn_response:str, now:datetime=None) -> AttributeSet:
    """ Vérifie une réponse d'authentification et retourne le sujet authentifié

    La réponse est en base64, sans compression (binding HTTP-POST)

    Args:
      authn_response: contenu du paramètre SAMLResponse
      now: instant de référence, l'heure courante UTC par défaut (sans fuseau, il est considéré comme UTC)

    Returns:
      NameID et attributs de l'unique assertion

    Raises:
      SAMLError si la réponse ne peut être décodée, analysée ou validée
    """

    try:
      decoded = base64.b64decode(''.join(authn_response.split()), validate=True)
    except (binascii.Error, ValueError) as error:
      raise EncodingError('SAMLResponse is not valid base64: '+str(error), reason=Reason.INVALID_BASE64) from error

    try:
      xml_resp = decoded.decode('utf-8')
    except UnicodeDecodeError as error:
      raise EncodingError('SAMLResponse is not UTF-8 text: '+str(error), reason=Reason.INVALID_ENCODING) from error
    logging.info(xml_resp)

    response = self._parser.parse(xml_resp)

    if now is None:
      now = datetime.now(timezone.utc)
    self._validator.validate(response, self._sp_config, self._idp_config, now, self._slack)

    return extract_attributes(response)
