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

import json
from datetime import timedelta

import pytest
from cryptography.x509.oid import NameOID

from samlspclient.CmdArgs import CmdArgs
from samlspclient.Configuration import Configuration, conf_dict
from samlspclient.SAMLClient import SAMLClient
from samlspclient.SAMLError import ConfigurationError, Reason


def write_conf(directory, conf:dict):
  conf_path = directory / 'samlsp.cnf'
  conf_path.write_text(json.dumps(conf), encoding='utf-8')
  return str(conf_path)


@pytest.fixture
def base_conf(sp_config, idp_config):
  return {
    'sp': {'entity_id': sp_config.entity_id, 'acs_url': sp_config.acs_url},
    'idp': {'entity_id': idp_config.entity_id, 'login_url': idp_config.login_url, 'certificate_file': 'idp.crt'},
    'validation': {'slack': 120},
    'preferences': {'logging': {'handler': []}},
    }


def test_conf_dict_path_access():
  d = {'guitare': {'électrique': {'solid': ['normal', 'offset']}}}
  conf = conf_dict.copy(d)

  assert conf['guitare/électrique/solid'] == ['normal', 'offset']
  assert conf['guitare']['électrique/solid'] == ['normal', 'offset']
  assert conf['/guitare/électrique'] == {'solid': ['normal', 'offset']}
  assert conf.get('guitare/basse', 'not found') == 'not found'
  assert conf.get('guitare/électrique/solid/normal') is None
  with pytest.raises(KeyError):
    conf['guitare/basse']


def test_client_from_configuration(tmp_path, base_conf, idp_credentials, sp_config):
  (tmp_path / 'idp.crt').write_text(idp_credentials[1], encoding='utf-8')

  conf = Configuration.read_configuration(write_conf(tmp_path, base_conf))
  client = SAMLClient.from_configuration(conf)

  assert conf['meta/dir'] == str(tmp_path)
  assert client.sp_config == sp_config
  assert client.slack == timedelta(seconds=120)
  assert client.idp_config.certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value == 'Test IdP'


def test_inline_certificate_and_default_slack(tmp_path, base_conf, idp_credentials):
  base64_body = ''.join(line for line in idp_credentials[1].splitlines() if not line.startswith('-----'))
  base_conf['idp'] = dict(base_conf['idp'], certificate=base64_body)
  del base_conf['idp']['certificate_file']
  del base_conf['validation']

  client = SAMLClient.from_configuration(Configuration.read_configuration(write_conf(tmp_path, base_conf)))

  assert client.slack == timedelta(seconds=300)


@pytest.mark.parametrize('path', ['sp/entity_id', 'sp/acs_url', 'idp/entity_id', 'idp/login_url', 'idp/certificate_file'])
def test_missing_parameter_rejected(tmp_path, base_conf, idp_credentials, path):
  (tmp_path / 'idp.crt').write_text(idp_credentials[1], encoding='utf-8')
  (section, key) = path.split('/')
  del base_conf[section][key]

  with pytest.raises(ConfigurationError) as excinfo:
    SAMLClient.from_configuration(Configuration.read_configuration(write_conf(tmp_path, base_conf)))
  assert excinfo.value.reason == Reason.MISSING_PARAMETER


@pytest.mark.parametrize('slack', ['five minutes', -1, [60], True, None])
def test_invalid_slack_rejected(tmp_path, base_conf, idp_credentials, slack):
  (tmp_path / 'idp.crt').write_text(idp_credentials[1], encoding='utf-8')
  base_conf['validation']['slack'] = slack

  with pytest.raises(ConfigurationError) as excinfo:
    SAMLClient.from_configuration(Configuration.read_configuration(write_conf(tmp_path, base_conf)))
  assert excinfo.value.reason == Reason.INVALID_PARAMETER


def test_numeric_string_slack_accepted(tmp_path, base_conf, idp_credentials):
  (tmp_path / 'idp.crt').write_text(idp_credentials[1], encoding='utf-8')
  base_conf['validation']['slack'] = '60'

  client = SAMLClient.from_configuration(Configuration.read_configuration(write_conf(tmp_path, base_conf)))
  assert client.slack == timedelta(seconds=60)


def test_certificate_file_outside_conf_dir_rejected(tmp_path, base_conf, idp_credentials):
  conf_dir = tmp_path / 'conf'
  conf_dir.mkdir()
  (tmp_path / 'idp.crt').write_text(idp_credentials[1], encoding='utf-8')
  base_conf['idp']['certificate_file'] = '../idp.crt'

  with pytest.raises(ConfigurationError) as excinfo:
    SAMLClient.from_configuration(Configuration.read_configuration(write_conf(conf_dir, base_conf)))
  assert 'not in configuration directory' in str(excinfo.value)


def test_invalid_certificate_rejected(tmp_path, base_conf):
  (tmp_path / 'idp.crt').write_text('-----BEGIN CERTIFICATE-----\nbm90IGEgY2VydGlmaWNhdGU=\n-----END CERTIFICATE-----\n', encoding='utf-8')

  with pytest.raises(ConfigurationError) as excinfo:
    SAMLClient.from_configuration(Configuration.read_configuration(write_conf(tmp_path, base_conf)))
  assert excinfo.value.reason == Reason.INVALID_CERTIFICATE


def test_missing_or_invalid_configuration_file(tmp_path):
  with pytest.raises(ConfigurationError):
    Configuration.read_configuration(str(tmp_path / 'missing.cnf'))

  conf_path = tmp_path / 'broken.cnf'
  conf_path.write_text('{"sp": ', encoding='utf-8')
  with pytest.raises(ConfigurationError):
    Configuration.read_configuration(str(conf_path))


def test_cmdargs():
  accepted = {'conf': 'string[conf/samlsp.cnf]', 'slack': 'int', 'mode': 'option(request,response)[request]', 'verbose': 'switch'}

  assert CmdArgs(accepted, []).parsed_args == {'conf': 'conf/samlsp.cnf', 'mode': 'request', 'verbose': False}
  assert CmdArgs(accepted, ['-slack', '60', '-verbose', '-mode', 'response', '-conf', '-']).parsed_args == \
    {'conf': '-', 'slack': 60, 'mode': 'response', 'verbose': True}


@pytest.mark.parametrize('argv', [['conf'], ['-unknown', 'x'], ['-conf'], ['-slack', 'ten'], ['-mode', 'logout']])
def test_cmdargs_errors(argv):
  accepted = {'conf': 'string', 'slack': 'int', 'mode': 'option(request,response)'}
  with pytest.raises(ValueError):
    CmdArgs(accepted, argv)
