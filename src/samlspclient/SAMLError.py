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


class Reason:
  """ Codes des motifs d'échec

  Chaque erreur levée par le client porte l'un de ces codes dans son attribut reason,
    ce qui permet à l'appelant d'aiguiller son traitement sans analyser le message.

  Versions:
    19/10/2026 version initiale
  """

  # transport
  INVALID_BASE64 = 'invalid_base64'
  INVALID_ENCODING = 'invalid_encoding'
  COMPRESSION_FAILED = 'compression_failed'

  # construction de la requête
  EMPTY_REQUEST_ID = 'empty_request_id'
  MARSHALLING_FAILED = 'marshalling_failed'

  # analyse XML
  MALFORMED_XML = 'malformed_xml'
  NOT_A_RESPONSE = 'not_a_response'
  INVALID_DATE = 'invalid_date'

  # signature
  SIGNATURE_INVALID = 'signature_invalid'
  RESPONSE_NOT_SIGNED = 'response_not_signed'
  RESPONSE_SIGNATURE_INVALID = 'response_signature_invalid'
  ASSERTION_NOT_SIGNED = 'assertion_not_signed'
  ASSERTION_SIGNATURE_INVALID = 'assertion_signature_invalid'

  # validation
  UNSUCCESSFUL_STATUS = 'unsuccessful_status'
  WRONG_DESTINATION = 'wrong_destination'
  ISSUE_INSTANT_IN_PAST = 'issue_instant_in_past'
  ISSUE_INSTANT_IN_FUTURE = 'issue_instant_in_future'
  MULTIPLE_ASSERTIONS = 'multiple_assertions'
  MISSING_AUTHN_STATEMENT = 'missing_authn_statement'
  SESSION_EXPIRED = 'session_expired'
  MISSING_CONDITIONS = 'missing_conditions'
  UNBOUNDED_CONDITIONS = 'unbounded_conditions'
  CONDITIONS_NOT_YET_VALID = 'conditions_not_yet_valid'
  CONDITIONS_EXPIRED = 'conditions_expired'
  SUBJECT_CONFIRMATION_EXPIRED = 'subject_confirmation_expired'
  NO_CONFIRMATION_FOR_ACS = 'no_confirmation_for_acs'
  MISSING_AUDIENCE_RESTRICTION = 'missing_audience_restriction'
  MULTIPLE_AUDIENCE_RESTRICTIONS = 'multiple_audience_restrictions'
  AUDIENCE_MISMATCH = 'audience_mismatch'

  # extraction
  NO_ASSERTION = 'no_assertion'
  MISSING_SUBJECT = 'missing_subject'
  MISSING_NAME_ID = 'missing_name_id'

  # configuration
  MISSING_PARAMETER = 'missing_parameter'
  INVALID_PARAMETER = 'invalid_parameter'
  INVALID_CERTIFICATE = 'invalid_certificate'


class SAMLError(Exception):
  """ Exception fonctionnelle

  Toutes les erreurs du client en dérivent : une réponse refusée l'est définitivement,
    l'appelant doit relancer une authentification auprès de l'IdP.
  """

  def __init__(self, message:str, reason:str=None):
    self.reason = reason
    super().__init__(message)


class EncodingError(SAMLError):
  """ base64 invalide, texte non UTF-8, échec de compression
  """


class MarshallingError(SAMLError):
  """ Impossible de produire le XML de la requête d'authentification
  """


class ParseError(SAMLError):
  """ XML mal formé ou qui n'est pas une réponse SAML
  """


class SignatureError(SAMLError):
  """ Signature absente, mal formée ou invalide

  Séparée des erreurs de validation car elle relève de la sécurité (à journaliser différemment)
  """


class ValidationError(SAMLError):
  """ Règle de validation de la réponse non respectée
  """


class StructureError(SAMLError):
  """ Réponse valide mais inexploitable (pas de sujet, pas de NameID, nombre d'assertions)
  """


class ConfigurationError(SAMLError):
  """ Paramètre manquant ou invalide dans la configuration
  """
