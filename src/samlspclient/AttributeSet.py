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

from types import MappingProxyType
from .SAMLError import Reason, StructureError
from .SAMLModel import Response


class AttributeSet:
  """ Identité authentifiée : NameID du sujet et attributs

  Les attributs sont un dictionnaire en lecture seule, nom de l'attribut -> tuple des valeurs,
    dans l'ordre de première apparition des noms dans l'assertion.

  Accès :
    - get(nom) : tuple des valeurs d'un attribut
    - get_first(nom) : première valeur, pour les attributs monovalués (email, nom affiché...)

  Deux AttributeSet sont égaux s'ils ont le même NameID et les mêmes attributs : l'application peut ainsi
    vérifier qu'une nouvelle authentification concerne la même identité.
  """

  def __init__(self, name_id:str, attributes:dict):
    self._name_id = name_id
    self._attributes = MappingProxyType(dict(attributes))


  @property
  def name_id(self) -> str:
    return self._name_id


  @property
  def attributes(self):
    return self._attributes


  def get(self, name:str, default=None):
    return self._attributes.get(name, default)


  def get_first(self, name:str, default=None):
    """ Retourne la première valeur d'un attribut, default si l'attribut n'existe pas ou n'a pas de valeur
    """
    values = self._attributes.get(name)
    if not values:
      return default
    return values[0]


  def __eq__(self, other):
    if not isinstance(other, AttributeSet):
      return NotImplemented
    return self._name_id == other._name_id and dict(self._attributes) == dict(other._attributes)


  def __repr__(self):
    return f"AttributeSet(name_id={self._name_id!r}, attributes={dict(self._attributes)!r})"


def extract_attributes(response:Response) -> AttributeSet:
  """ Extrait le sujet et les attributs de l'unique assertion d'une réponse validée

  Les AttributeStatement sont parcourus dans l'ordre du document.
  Si un même nom d'attribut apparaît plusieurs fois, c'est la dernière liste de valeurs qui est conservée
    (les listes ne sont pas fusionnées).

  Args:
    response: réponse ayant passé ResponseValidator.validate

  Returns:
    AttributeSet

  Raises:
    StructureError si la réponse n'a pas exactement une assertion, ou si le sujet ou le NameID sont absents

  Versions:
    19/10/2026 version initiale
  """

  if len(response.assertions) == 0:
    raise StructureError('Response should have a single assertion, none found', reason=Reason.NO_ASSERTION)
  if len(response.assertions) > 1:
    raise StructureError(f"Response should have a single assertion, {len(response.assertions)} found", reason=Reason.MULTIPLE_ASSERTIONS)
  assertion = response.assertions[0]

  subject = assertion.subject
  if subject is None:
    raise StructureError('No subject contained in the assertion', reason=Reason.MISSING_SUBJECT)
  if subject.name_id is None:
    raise StructureError('No NameID found in the subject', reason=Reason.MISSING_NAME_ID)

  name_id = subject.name_id.value
  logging.info('NameID: '+name_id)

  attributes = {}
  for statement in assertion.attribute_statements:
    for attribute in statement.attributes:
      attributes[attribute.name] = tuple(attribute.values)

  return AttributeSet(name_id, attributes)
