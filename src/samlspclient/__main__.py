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

"""
  Utilisation en ligne de commande

    python -m samlspclient -conf conf/samlsp.cnf -request <ID> [-relaystate <RS>]
      affiche la requête encodée et l'URL de redirection vers l'IdP

    python -m samlspclient -conf conf/samlsp.cnf -response <fichier ou ->
      valide une réponse (contenu base64 du paramètre SAMLResponse) et affiche le NameID et les attributs en JSON

    python -m samlspclient -keygen <préfixe>
      génère une clé privée (<préfixe>.key) et un certificat autosigné (<préfixe>.crt)

  Code retour 1 en cas d'erreur SAML ou de configuration
"""

import json
import logging
import sys

from .CmdArgs import CmdArgs
from .Configuration import Configuration
from .CryptoTools import CryptoTools
from .SAMLClient import SAMLClient
from .SAMLError import SAMLError


USAGE = 'usage: python -m samlspclient [-conf <file>] (-request <id> [-relaystate <rs>] | -response <file|-> | -keygen <prefix>)'


def main(argv:list=None) -> int:

  try:
    args = CmdArgs({
      'conf': 'string[conf/'+Configuration.DEFAULT_FILENAME+']',
      'request': 'string',
      'relaystate': 'string',
      'response': 'string',
      'keygen': 'string',
      }, argv).parsed_args
  except ValueError as error:
    print(str(error), file=sys.stderr)
    print(USAGE, file=sys.stderr)
    return 2

  if 'keygen' in args:
    prefix = args['keygen']
    CryptoTools.generate_self_signed_certificate('SAMLSPClient', prefix+'.key', prefix+'.crt')
    print('Key written to '+prefix+'.key, certificate written to '+prefix+'.crt')
    return 0

  if 'request' not in args and 'response' not in args:
    print(USAGE, file=sys.stderr)
    return 2

  try:
    conf = Configuration.read_configuration(args['conf'])
    Configuration.configure_logging(conf.get('preferences/logging/handler', []))
    client = SAMLClient.from_configuration(conf)

    if 'request' in args:
      print(client.generate_authn_request(args['request']))
      print(client.generate_redirect_url(args['request'], args.get('relaystate')))

    if 'response' in args:
      if args['response'] == '-':
        authn_response = sys.stdin.read()
      else:
        with open(args['response'], encoding='utf-8') as in_file:
          authn_response = in_file.read()

      attribute_set = client.validate_response(authn_response)
      print(json.dumps({
        'name_id': attribute_set.name_id,
        'attributes': {name: list(values) for (name, values) in attribute_set.attributes.items()},
        }, indent=2))

  except SAMLError as error:
    logging.error(f"{type(error).__name__} ({error.reason}): {error}")
    print(f"{type(error).__name__} ({error.reason}): {error}", file=sys.stderr)
    return 1
  except OSError as error:
    print('Unable to read response: '+str(error), file=sys.stderr)
    return 1

  return 0


if __name__ == '__main__':
  sys.exit(main())
