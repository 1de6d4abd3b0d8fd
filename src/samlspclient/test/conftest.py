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
from datetime import datetime, timedelta, timezone

import pytest
import xmlsec
from lxml import etree

from samlspclient.CryptoTools import CryptoTools
from samlspclient.SAMLClient import SAMLClient
from samlspclient.SAMLConfig import IdPConfig, SPConfig
from samlspclient.SAMLModel import SAML_NS, STATUS_SUCCESS, format_saml_date


NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

SP_ENTITY_ID = 'https://sp.example.com/saml'
SP_ACS_URL = 'https://sp.example.com/saml/acs'
IDP_ENTITY_ID = 'https://idp.example.com/saml'
IDP_LOGIN_URL = 'https://idp.example.com/saml/sso'


RESPONSE_TEMPLATE = (
  '<samlp:Response xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol" xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion"'
  ' ID="{response_id}" Version="2.0" IssueInstant="{issue_instant}" Destination="{destination}" InResponseTo="_req1">'
  '<saml:Issuer>{issuer}</saml:Issuer>'
  '<samlp:Status><samlp:StatusCode Value="{status}"/></samlp:Status>'
  '{assertions}'
  '</samlp:Response>'
  )

ASSERTION_TEMPLATE = (
  '<saml:Assertion ID="{assertion_id}" Version="2.0" IssueInstant="{issue_instant}">'
  '<saml:Issuer>{issuer}</saml:Issuer>'
  '<saml:Subject>'
  '<saml:NameID Format="urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress">{name_id}</saml:NameID>'
  '<saml:SubjectConfirmation Method="urn:oasis:names:tc:SAML:2.0:cm:bearer">'
  '<saml:SubjectConfirmationData Recipient="{recipient}" NotOnOrAfter="{confirmation_not_on_or_after}" InResponseTo="_req1"/>'
  '</saml:SubjectConfirmation>'
  '</saml:Subject>'
  '<saml:Conditions NotBefore="{not_before}" NotOnOrAfter="{not_on_or_after}">'
  '<saml:AudienceRestriction>{audiences}</saml:AudienceRestriction>'
  '</saml:Conditions>'
  '<saml:AuthnStatement AuthnInstant="{issue_instant}" SessionIndex="_session1" SessionNotOnOrAfter="{session_not_on_or_after}">'
  '<saml:AuthnContext><saml:AuthnContextClassRef>urn:oasis:names:tc:SAML:2.0:ac:classes:PasswordProtectedTransport</saml:AuthnContextClassRef></saml:AuthnContext>'
  '</saml:AuthnStatement>'
  '{attribute_statements}'
  '</saml:Assertion>'
  )


def build_response_xml(now=NOW, destination=SP_ACS_URL, status=STATUS_SUCCESS, audiences=(SP_ENTITY_ID,),
  not_before=None, not_on_or_after=None, recipient=SP_ACS_URL, name_id='alice@example.com',
  attribute_statements=(), assertion_count=1) -> str:
  """ XML d'une réponse d'IdP, non signée

  attribute_statements est une liste d'AttributeStatement, chacun étant une liste de (nom, [valeurs])
  """

  if not_before is None:
    not_before = now - timedelta(minutes=5)
  if not_on_or_after is None:
    not_on_or_after = now + timedelta(minutes=5)

  statements_xml = ''
  for statement in attribute_statements:
    statements_xml += '<saml:AttributeStatement>'
    for (name, values) in statement:
      statements_xml += '<saml:Attribute Name="'+name+'">'
      for value in values:
        statements_xml += '<saml:AttributeValue>'+value+'</saml:AttributeValue>'
      statements_xml += '</saml:Attribute>'
    statements_xml += '</saml:AttributeStatement>'

  assertions_xml = ''
  for i in range(assertion_count):
    assertions_xml += ASSERTION_TEMPLATE.format(
      assertion_id = '_assertion'+str(i+1),
      issue_instant = format_saml_date(now),
      issuer = IDP_ENTITY_ID,
      name_id = name_id,
      recipient = recipient,
      confirmation_not_on_or_after = format_saml_date(now + timedelta(minutes=5)),
      not_before = format_saml_date(not_before),
      not_on_or_after = format_saml_date(not_on_or_after),
      audiences = ''.join('<saml:Audience>'+audience+'</saml:Audience>' for audience in audiences),
      session_not_on_or_after = format_saml_date(now + timedelta(hours=8)),
      attribute_statements = statements_xml,
      )

  return RESPONSE_TEMPLATE.format(
    response_id = '_response1',
    issue_instant = format_saml_date(now),
    destination = destination,
    issuer = IDP_ENTITY_ID,
    status = status,
    assertions = assertions_xml,
    )


def sign_element(element, private_key:str):
  """ Signature enveloppée d'un élément (Response ou Assertion), placée après son Issuer
  """

  signature_node = xmlsec.template.create(
    element,
    c14n_method=xmlsec.Transform.EXCL_C14N,
    sign_method=xmlsec.Transform.RSA_SHA256,
    ns='ds')

  issuer_el = element.find('{'+SAML_NS+'}Issuer')
  issuer_el.addnext(signature_node)
  ref = xmlsec.template.add_reference(signature_node, xmlsec.Transform.SHA256, uri='#'+element.get('ID'))
  xmlsec.template.add_transform(ref, xmlsec.Transform.ENVELOPED)
  xmlsec.template.add_transform(ref, xmlsec.Transform.EXCL_C14N)

  ctx = xmlsec.SignatureContext()
  ctx.key = xmlsec.Key.from_memory(private_key, xmlsec.KeyFormat.PEM, None)
  ctx.sign(signature_node)


def sign_response_xml(xml:str, private_key:str, sign_response:bool=True, sign_assertion:bool=True) -> str:
  """ Signe les assertions puis la réponse (la signature de la réponse couvre celles des assertions)
  """

  root_el = etree.fromstring(xml.encode('utf-8'))
  xmlsec.tree.add_ids(root_el, ["ID"])

  if sign_assertion:
    for assertion_el in root_el.findall('{'+SAML_NS+'}Assertion'):
      sign_element(assertion_el, private_key)
  if sign_response:
    sign_element(root_el, private_key)

  return etree.tostring(root_el, encoding='unicode')


def encode(xml:str) -> str:
  return base64.b64encode(xml.encode('utf-8')).decode('ascii')


@pytest.fixture(scope='session')
def idp_credentials():
  """ (clé privée PEM, certificat PEM) de l'IdP de test
  """
  return CryptoTools.generate_key_self_signed('Test IdP')


@pytest.fixture(scope='session')
def other_credentials():
  return CryptoTools.generate_key_self_signed('Rogue IdP')


@pytest.fixture
def sp_config():
  return SPConfig(entity_id=SP_ENTITY_ID, acs_url=SP_ACS_URL)


@pytest.fixture
def idp_config(idp_credentials):
  return IdPConfig(entity_id=IDP_ENTITY_ID, login_url=IDP_LOGIN_URL,
    certificate=CryptoTools.load_certificate(idp_credentials[1]))


@pytest.fixture
def client(sp_config, idp_config):
  return SAMLClient(sp_config, idp_config)


@pytest.fixture
def now():
  return NOW


@pytest.fixture
def signed_xml(idp_credentials):
  """ Fabrique de réponses signées par l'IdP de test (XML)
  """

  def make(sign_response=True, sign_assertion=True, private_key=None, **options):
    xml = build_response_xml(**options)
    return sign_response_xml(xml, private_key or idp_credentials[0], sign_response=sign_response, sign_assertion=sign_assertion)

  return make


@pytest.fixture
def signed_response(signed_xml):
  """ Fabrique de réponses signées par l'IdP de test, encodées en base64 comme le paramètre SAMLResponse
  """

  def make(**options):
    return encode(signed_xml(**options))

  return make


@pytest.fixture
def response_xml():
  """ Fabrique de réponses non signées (XML)
  """
  return build_response_xml
