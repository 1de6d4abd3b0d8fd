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

from lxml import etree
from .SAMLError import ParseError, Reason
from .SAMLModel import (DS_NS, SAML_NS, SAMLP_NS, Assertion, Attribute, AttributeStatement, AudienceRestriction,
  AuthnStatement, Conditions, NameID, Response, Subject, SubjectConfirmation, SubjectConfirmationData, parse_saml_date)


class ResponseParser:
  """ Analyse le XML d'une réponse SAML (samlp:Response) et la transforme en objets SAMLModel

  Les éléments ds:Signature sont conservés tels quels (éléments lxml rattachés au document)
    pour que SignatureVerifier puisse les vérifier.

  L'analyse ne vérifie rien d'autre que la structure : toutes les décisions sont prises par ResponseValidator.

  Un parseur lxml est créé à chaque appel, ce qui permet des analyses concurrentes.

  Versions:
    19/10/2026 version initiale
  """

  def parse(self, xml_text:str) -> Response:
    """ Analyse une réponse SAML

    Args:
      xml_text: XML de la réponse

    Returns:
      Response

    Raises:
      ParseError si le XML est mal formé, contient une DTD, n'est pas une réponse SAML ou contient une date invalide
    """

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
      root_el = etree.fromstring(xml_text.encode('utf-8'), parser=parser)
    except etree.XMLSyntaxError as error:
      raise ParseError('Malformed XML response: '+str(error), reason=Reason.MALFORMED_XML) from error

    if root_el.getroottree().docinfo.doctype:
      raise ParseError('DTD not allowed in SAML response', reason=Reason.MALFORMED_XML)

    if root_el.tag != '{'+SAMLP_NS+'}Response':
      raise ParseError('XML document is not a SAML response: '+str(root_el.tag), reason=Reason.NOT_A_RESPONSE)

    status_code = None
    status_code_el = root_el.find('{'+SAMLP_NS+'}Status/{'+SAMLP_NS+'}StatusCode')
    if status_code_el is not None:
      status_code = status_code_el.get('Value')

    assertions = tuple(self._parse_assertion(assertion_el) for assertion_el in root_el.findall('{'+SAML_NS+'}Assertion'))
    logging.info(f"SAML response {root_el.get('ID')} parsed, {len(assertions)} assertion(s)")

    return Response(
      id = root_el.get('ID'),
      issuer = self._child_text(root_el, 'Issuer'),
      destination = root_el.get('Destination'),
      issue_instant = self._date(root_el, 'IssueInstant'),
      status_code = status_code,
      assertions = assertions,
      signature = root_el.find('{'+DS_NS+'}Signature'),
      )


  def _parse_assertion(self, assertion_el) -> Assertion:

    subject = None
    subject_el = assertion_el.find('{'+SAML_NS+'}Subject')
    if subject_el is not None:
      subject = self._parse_subject(subject_el)

    authn_statements = []
    for statement_el in assertion_el.findall('{'+SAML_NS+'}AuthnStatement'):
      authn_statements.append(AuthnStatement(
        authn_instant = self._date(statement_el, 'AuthnInstant'),
        session_index = statement_el.get('SessionIndex'),
        session_not_on_or_after = self._date(statement_el, 'SessionNotOnOrAfter'),
        ))

    conditions = None
    conditions_el = assertion_el.find('{'+SAML_NS+'}Conditions')
    if conditions_el is not None:
      audience_restrictions = []
      for restriction_el in conditions_el.findall('{'+SAML_NS+'}AudienceRestriction'):
        audiences = tuple(self._text(audience_el).strip() for audience_el in restriction_el.findall('{'+SAML_NS+'}Audience'))
        audience_restrictions.append(AudienceRestriction(audiences=audiences))
      conditions = Conditions(
        not_before = self._date(conditions_el, 'NotBefore'),
        not_on_or_after = self._date(conditions_el, 'NotOnOrAfter'),
        audience_restrictions = tuple(audience_restrictions),
        )

    attribute_statements = []
    for statement_el in assertion_el.findall('{'+SAML_NS+'}AttributeStatement'):
      attributes = []
      for attribute_el in statement_el.findall('{'+SAML_NS+'}Attribute'):
        values = tuple(self._text(value_el) for value_el in attribute_el.findall('{'+SAML_NS+'}AttributeValue'))
        attributes.append(Attribute(name=attribute_el.get('Name'), values=values))
      attribute_statements.append(AttributeStatement(attributes=tuple(attributes)))

    return Assertion(
      id = assertion_el.get('ID'),
      issuer = self._child_text(assertion_el, 'Issuer'),
      issue_instant = self._date(assertion_el, 'IssueInstant'),
      subject = subject,
      authn_statements = tuple(authn_statements),
      conditions = conditions,
      signature = assertion_el.find('{'+DS_NS+'}Signature'),
      attribute_statements = tuple(attribute_statements),
      )


  def _parse_subject(self, subject_el) -> Subject:

    name_id = None
    nameid_el = subject_el.find('{'+SAML_NS+'}NameID')
    if nameid_el is not None:
      name_id = NameID(value=self._text(nameid_el).strip(), format=nameid_el.get('Format'))

    confirmations = []
    for confirmation_el in subject_el.findall('{'+SAML_NS+'}SubjectConfirmation'):
      data = None
      data_el = confirmation_el.find('{'+SAML_NS+'}SubjectConfirmationData')
      if data_el is not None:
        data = SubjectConfirmationData(
          recipient = data_el.get('Recipient'),
          not_on_or_after = self._date(data_el, 'NotOnOrAfter'),
          in_response_to = data_el.get('InResponseTo'),
          )
      confirmations.append(SubjectConfirmation(method=confirmation_el.get('Method'), data=data))

    return Subject(name_id=name_id, subject_confirmations=tuple(confirmations))


  def _text(self, element) -> str:
    # concaténation des noeuds texte (les commentaires sont ignorés)
    return element.xpath('string()')


  def _child_text(self, element, name:str) -> str:
    child_el = element.find('{'+SAML_NS+'}'+name)
    if child_el is None:
      return None
    return self._text(child_el).strip()


  def _date(self, element, attribute:str):
    value = element.get(attribute)
    if value is None:
      return None
    return parse_saml_date(value)
