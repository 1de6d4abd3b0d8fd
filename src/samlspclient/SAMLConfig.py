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


"""
  Description du fournisseur de service (SP) et du fournisseur d'identité (IdP)

  Objets immuables, créés une fois pour toutes à la construction du client.
  Le certificat de l'IdP est un cryptography.x509.Certificate : il n'est jamais modifié
    et peut être partagé entre des validations concurrentes.
"""

SPConfig = namedtuple('SPConfig', 'entity_id acs_url')

IdPConfig = namedtuple('IdPConfig', 'entity_id login_url certificate')
