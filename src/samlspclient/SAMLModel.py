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
from collections import namedtuple
from datetime import datetime, timezone

from .SAMLError import ParseError, Reason


"""
  Objets SAML manipulés par le client

  Les réponses sont produites par ResponseParser, mais les objets peuvent être construits directement
    (c'est ce que font les tests du validateur).
  Toutes les dates sont des datetime UTC avec fuseau (tzinfo=timezone.utc).
  Les champs signature contiennent l'élément ds:Signature transmis tel quel au vérificateur de signature,
    ou None si l'élément n'est pas signé.
"""

SAMLP_NS = 'urn:oasis:names:tc:SAML:2.0:protocol'
SAML_NS = 'urn:oasis:names:tc:SAML:2.0:assertion'
DS_NS = 'http://www.w3.org/2000/09/xmldsig#'

STATUS_SUCCESS = 'urn:oasis:names:tc:SAML:2.0:status:Success'

AuthnRequest = namedtuple('AuthnRequest', 'id issue_instant issuer destination assertion_consumer_service_url')

Response = namedtuple('Response', 'id issuer destination issue_instant status_code assertions signature',
  defaults=(None, None, None, None, None, (), None))

Assertion = namedtuple('Assertion', 'id issuer issue_instant subject authn_statements conditions signature attribute_statements',
  defaults=(None, None, None, None, (), None, None, ()))

NameID = namedtuple('NameID', 'value format', defaults=(None,))

Subject = namedtuple('Subject', 'name_id subject_confirmations', defaults=(None, ()))

SubjectConfirmation = namedtuple('SubjectConfirmation', 'method data', defaults=(None, None))

SubjectConfirmationData = namedtuple('SubjectConfirmationData', 'recipient not_on_or_after in_response_to',
  defaults=(None, None, None))

AuthnStatement = namedtuple('AuthnStatement', 'authn_instant session_index session_not_on_or_after',
  defaults=(None, None, None))

Conditions = namedtuple('Conditions', 'not_before not_on_or_after audience_restrictions', defaults=(None, None, ()))

AudienceRestriction = namedtuple('AudienceRestriction', 'audiences', defaults=((),))

AttributeStatement = namedtuple('AttributeStatement', 'attributes', defaults=((),))

Attribute = namedtuple('Attribute', 'name values', defaults=((),))


def parse_saml_date(date_str:str) -> datetime:
  """Parse une date SAML, au format YYYY-MM-DDThh:mm:ssZ

    Certains IdP mettent des fractions de seconde, parfois avec plus de 6 chiffres (ADFS en met 7) :
      on tronque à la microseconde

    Args:
      date_str: date au format YYYY-MM-DDThh:mm:ssZ ou YYYY-MM-DDThh:mm:ss.fffZ

    Returns:
      datetime UTC

    Raises:
      ParseError si la date n'est pas au bon format

    Versions:
      19/10/2026 version initiale
  """

  value = date_str.strip()
  if value.endswith('Z'):
    value = value[:-1]
  elif value.endswith('+00:00'):
    value = value[:-6]

  fraction = '0'
  if '.' in value:
    (value, fraction) = value.split('.', 1)

  try:
    if not fraction.isdigit():
      raise ValueError('invalid fractional seconds '+fraction)
    date = datetime.strptime(value+'.'+(fraction+'000000')[:6], '%Y-%m-%dT%H:%M:%S.%f')
  except ValueError as error:
    raise ParseError(f"Invalid SAML date {date_str}", reason=Reason.INVALID_DATE) from error

  return date.replace(tzinfo=timezone.utc)


def format_saml_date(date:datetime) -> str:
  """ Formate une date pour un message SAML (UTC, à la seconde)
  """
  if date.tzinfo is not None:
    date = date.astimezone(timezone.utc)
  return date.strftime('%Y-%m-%dT%H:%M:%SZ')
