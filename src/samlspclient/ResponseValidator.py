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

from datetime import datetime, timedelta, timezone
from .SAMLConfig import IdPConfig, SPConfig
from .SAMLError import Reason, SignatureError, ValidationError
from .SAMLModel import STATUS_SUCCESS, Assertion, Response


DEFAULT_SLACK = 300

ONE_DAY = timedelta(days=1)


class ResponseValidator:
  """ Validation d'une réponse SAML

  Les vérifications sont réalisées dans un ordre fixe, la première règle non respectée détermine l'erreur levée
    (les appelants peuvent se baser sur le motif, l'ordre fait donc partie du contrat) :
    1. signature de la réponse
    2. statut
    3. destination (URL ACS du SP)
    4. IssueInstant de la réponse (à un jour près)
    5. une seule assertion, puis pour cette assertion :
       a. signature
       b. AuthnStatement et expiration de session
       c. présence des conditions
       d. IssueInstant de l'assertion
       e. bornes NotBefore / NotOnOrAfter des conditions
       f. SubjectConfirmation à destination de l'URL ACS
       g. restriction d'audience

  Les signatures sont vérifiées en premier : aucune décision n'est prise sur des données non authentifiées.

  Toutes les comparaisons de dates sont élargies d'une même tolérance (slack) pour absorber les décalages
    d'horloge entre SP et IdP.

  La validation ne conserve aucun état entre deux appels : un même objet peut servir à des validations concurrentes
    si le vérificateur de signature le permet (c'est le cas de SignatureVerifier).

  Versions:
    19/10/2026 version initiale
  """

  def __init__(self, verifier):
    """ Constructeur

    Args:
      verifier: objet exposant verify(signature, certificate), levant une exception si la signature est invalide
    """
    self.verifier = verifier


  def validate(self, response:Response, sp_config:SPConfig, idp_config:IdPConfig, now:datetime, slack:timedelta):
    """ Valide une réponse SAML à un instant donné

    Args:
      response: réponse analysée
      sp_config: configuration du SP
      idp_config: configuration de l'IdP (certificat de confiance)
      now: instant de référence, un datetime sans fuseau est considéré comme UTC
      slack: tolérance appliquée à toutes les comparaisons de dates

    Raises:
      SignatureError si une signature est absente ou invalide
      ValidationError si une règle n'est pas respectée
    """

    logging.info(f"Validating SAML response {response.id}")

    # les dates SAML sont toujours comparées en UTC
    if now.tzinfo is None:
      now = now.replace(tzinfo=timezone.utc)

    # la signature doit être celle de l'IdP
    self._verify_signature(response.signature, idp_config,
      'Response', Reason.RESPONSE_NOT_SIGNED, Reason.RESPONSE_SIGNATURE_INVALID)

    # la réponse doit être un succès
    if response.status_code != STATUS_SUCCESS:
      self._reject(f"Response has an unsuccessful status code: {response.status_code}", Reason.UNSUCCESSFUL_STATUS)
    logging.info(f"Status code: {response.status_code}")

    # la réponse doit être destinée à notre ACS
    if response.destination != sp_config.acs_url:
      self._reject(f"Response is destined for a different endpoint: {response.destination} (response) != {sp_config.acs_url} (SP ACS URL)",
        Reason.WRONG_DESTINATION)
    logging.info(f"Destination: {response.destination}")

    self._check_issue_instant(response.issue_instant, now, slack, 'Response')

    # on n'accepte qu'une assertion, pour que la portée de la confiance soit sans ambiguïté
    if len(response.assertions) > 1:
      self._reject(f"Response contains {len(response.assertions)} assertions, only one is supported", Reason.MULTIPLE_ASSERTIONS)

    for assertion in response.assertions:
      self._validate_assertion(assertion, sp_config, idp_config, now, slack)

    logging.info(f"SAML response {response.id} validated")


  def _validate_assertion(self, assertion:Assertion, sp_config:SPConfig, idp_config:IdPConfig, now:datetime, slack:timedelta):

    # l'assertion doit être signée correctement
    self._verify_signature(assertion.signature, idp_config,
      'Assertion', Reason.ASSERTION_NOT_SIGNED, Reason.ASSERTION_SIGNATURE_INVALID)

    # au moins un AuthnStatement, avec une session non expirée
    if len(assertion.authn_statements) == 0:
      self._reject('Assertion should contain an AuthnStatement', Reason.MISSING_AUTHN_STATEMENT)
    for statement in assertion.authn_statements:
      if statement.session_not_on_or_after is not None:
        if now >= statement.session_not_on_or_after + slack:
          self._reject(f"AuthnStatement has expired (SessionNotOnOrAfter {statement.session_not_on_or_after}, now is {now})",
            Reason.SESSION_EXPIRED)

    conditions = assertion.conditions
    if conditions is None:
      self._reject('Assertion should contain conditions', Reason.MISSING_CONDITIONS)

    self._check_issue_instant(assertion.issue_instant, now, slack, 'Assertion')

    # les conditions doivent être bornées et satisfaites maintenant
    if conditions.not_before is None or conditions.not_on_or_after is None:
      self._reject('Assertion conditions must have limits', Reason.UNBOUNDED_CONDITIONS)
    if now < conditions.not_before - slack:
      self._reject(f"Assertion conditions is in the future (NotBefore {conditions.not_before}, now is {now})",
        Reason.CONDITIONS_NOT_YET_VALID)
    if now >= conditions.not_on_or_after + slack:
      self._reject(f"Assertion conditions is in the past (NotOnOrAfter {conditions.not_on_or_after}, now is {now})",
        Reason.CONDITIONS_EXPIRED)
    logging.info(f"Conditions [{conditions.not_before}, {conditions.not_on_or_after}[ passed (now is {now})")

    # si des SubjectConfirmation sont présents, l'un d'entre eux doit avoir notre ACS pour destinataire
    subject = assertion.subject
    if subject is not None and len(subject.subject_confirmations) > 0:
      found_recipient = False
      for confirmation in subject.subject_confirmations:
        data = confirmation.data
        if data is None:
          continue
        if data.not_on_or_after is not None and now >= data.not_on_or_after + slack:
          self._reject(f"SubjectConfirmationData is in the past (NotOnOrAfter {data.not_on_or_after}, now is {now})",
            Reason.SUBJECT_CONFIRMATION_EXPIRED)
        if data.recipient == sp_config.acs_url:
          found_recipient = True
      if not found_recipient:
        self._reject('No SubjectConfirmationData found for ACS '+sp_config.acs_url, Reason.NO_CONFIRMATION_FOR_ACS)
      logging.info('Subject Recipient verification passed')

    # l'audience doit contenir notre SP
    #   une seule restriction supportée : on ne peut vérifier que par rapport à notre SP
    if len(conditions.audience_restrictions) == 0:
      self._reject('Assertion conditions must have audience restrictions', Reason.MISSING_AUDIENCE_RESTRICTION)
    if len(conditions.audience_restrictions) > 1:
      self._reject('Assertion contains multiple audience restrictions', Reason.MULTIPLE_AUDIENCE_RESTRICTIONS)
    audiences = conditions.audience_restrictions[0].audiences
    if sp_config.entity_id not in audiences:
      self._reject(f"Assertion audience does not include issuer: {', '.join(audiences)} (assertion) != {sp_config.entity_id} (SP entity ID)",
        Reason.AUDIENCE_MISMATCH)
    logging.info('Audience condition passed: '+sp_config.entity_id)


  def _verify_signature(self, signature, idp_config:IdPConfig, element_name:str, missing_reason:str, invalid_reason:str):
    """ Vérifie la signature d'un élément avec le certificat de l'IdP

    Toute exception du vérificateur est transformée en SignatureError
    """

    if signature is None:
      logging.error(element_name+' must be signed')
      raise SignatureError(element_name+' must be signed', reason=missing_reason)

    try:
      self.verifier.verify(signature, idp_config.certificate)
    except Exception as error:
      logging.error(element_name+' signature verification failed: '+str(error))
      raise SignatureError(element_name+' signature verification failed: '+str(error), reason=invalid_reason) from error

    logging.info(element_name+' signature verification: OK')


  def _check_issue_instant(self, issue_instant:datetime, now:datetime, slack:timedelta, element_name:str):
    """ IssueInstant, s'il est présent, doit être à moins d'un jour (plus la tolérance) de l'instant courant
    """

    if issue_instant is None:
      return

    if issue_instant < now - ONE_DAY - slack:
      self._reject(f"{element_name} IssueInstant is in the past ({issue_instant}, now is {now})", Reason.ISSUE_INSTANT_IN_PAST)
    if issue_instant > now + ONE_DAY + slack:
      self._reject(f"{element_name} IssueInstant is in the future ({issue_instant}, now is {now})", Reason.ISSUE_INSTANT_IN_FUTURE)


  def _reject(self, message:str, reason:str):
    logging.error('SAML response rejected: '+message)
    raise ValidationError(message, reason=reason)
