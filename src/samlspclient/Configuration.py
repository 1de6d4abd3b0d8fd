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

from .SAMLError import ConfigurationError, Reason
from datetime import datetime
import json
import logging
import os
import sys


class conf_dict(dict):
  """ dict personnalisé pour la configuration, donnant un accès direct à une clé dans un arbre

  Le chemin d'une valeur est donné par la liste des clés depuis la racine, séparées par des barres obliques (/)

  Par exemple : idp/login_url

  L'accès est possible par :
    - les crochets : conf['clé']
    - get : conf.get('clé', 'valeur par défaut')
  """

  def copy(d:dict) -> dict:
    """ Réalise une copie d'un dictionnaire en conf_dict
    en itérant à tous les niveaux

    Args:
      d: dictionnaire à traduire

    Returns;
      un conf_dict avec le même contenu que d
    """

    copy = conf_dict()
    for (key, value) in d.items():

      if isinstance(value, dict):
        copy[key] = conf_dict.copy(value)
      else:
        copy[key] = value

    return copy


  def __getitem__(self, path:str):
    """ obtention de la valeur d'une clé, par les crochets []
      soit une clé au premier niveau (pas de / dans le chemin), avec le même comportement que []
      soit une clé dans le sous-arbre (le chemin étant donné par les clés séparées par des /)

    Lève KeyError si la valeur ne peut être trouvée (clé ou chemin invalide)

    Args:
      path: chemin des clés dans le sous-arbre, s'il commence par un / il est ignoré

    Returns:
      valeur de la clé
    """

    if path.startswith('/'):
      path = path[1:]
    if path.find('/') >= 0:
      d = self
      for key in path.split('/'):
        d = d[key]
      value = d
    else:
      value = super().__getitem__(path)

    return value


  def get(self, path:str, default=None):
    """ obtention de la valeur d'une clé, par la méthode get

    Retourne la valeur par défaut si la valeur ne peut être trouvée (clé ou chemin invalide)

    Args:
      path: chemin des clés dans le sous-arbre, s'il commence par un / il est ignoré
      default: valeur par défaut (None si pas donnée) retournée si la clé n'est pas trouvée

    Returns:
      valeur de la clé si elle peut être récupérée, la valeur par défaut sinon
    """

    value = default

    if path.startswith('/'):
      path = path[1:]
    d = self
    try:
      for key in path.split('/'):
        d = d[key]
      value = d
    except (KeyError, TypeError):
      pass

    return value


class Configuration():

  DEFAULT_FILENAME = 'samlsp.cnf'

  def read_configuration(conf_filepath:str) -> conf_dict:
    """
    Lit un fichier de configuration JSON

    Met le nom du fichier dans /meta/filename et le dossier qui le contient dans /meta/dir
      (les fichiers référencés par la configuration, comme le certificat de l'IdP, sont cherchés dans ce dossier)

    Args:
      conf_filepath: chemin du fichier de configuration

    Returns:
      configuration (conf_dict)

    Raises:
      ConfigurationError si le fichier n'existe pas ou n'est pas du JSON
    """

    if not os.path.isfile(conf_filepath):
      raise ConfigurationError('configuration file '+conf_filepath+' not found', reason=Reason.MISSING_PARAMETER)

    try:
      with open(conf_filepath, encoding='utf-8') as json_file:
        file_conf = json.load(json_file)
    except json.JSONDecodeError as error:
      raise ConfigurationError('configuration file '+conf_filepath+' is not valid JSON: '+str(error)) from error

    conf = conf_dict.copy(file_conf)
    if 'meta' not in conf:
      conf['meta'] = conf_dict()
    conf['meta']['filename'] = os.path.basename(conf_filepath)
    conf['meta']['dir'] = os.path.dirname(os.path.abspath(conf_filepath))

    return conf


  def read_conf_file(conf:conf_dict, filename:str) -> str:
    """ Lit un fichier texte du dossier de configuration

    Args:
      conf: configuration issue de read_configuration
      filename: nom du fichier, relatif au dossier de configuration

    Raises:
      ConfigurationError si le fichier sort du dossier de configuration ou n'existe pas
    """

    conf_dir = conf.get('meta/dir', os.getcwd())
    file_path = os.path.join(conf_dir, filename)
    if not Configuration.check_path_traversal(conf_dir, file_path):
      raise ConfigurationError('file '+filename+' not in configuration directory', reason=Reason.MISSING_PARAMETER)
    if not os.path.isfile(file_path):
      raise ConfigurationError('file '+filename+' not found in configuration directory', reason=Reason.MISSING_PARAMETER)

    with open(file_path, encoding='utf-8') as in_file:
      return in_file.read()


  def check_path_traversal(base_dir:str, requested_path:str) -> bool:
    """
    vérifie que le chemin demandé ne fait pas de directory traversal
    retourne True si le chemin est conforme, False en cas d'attaque
    """

    base_dir = os.path.realpath(base_dir)
    return os.path.commonpath((os.path.realpath(requested_path), base_dir)) == base_dir


  def configure_logging(log_method:list, log_dir:str=None) -> bool:
    """ Configure les journaux

    Args:
      log_method: liste des destinations, parmi console et file
      log_dir: dossier des fichiers de journaux (logs dans le dossier courant par défaut)

    Returns:
      False si aucune destination n'est configurée
    """

    handler_list = []

    if "file" in log_method:
      date = datetime.today().strftime('%Y-%m-%d')
      if log_dir is None:
        log_dir = os.path.join(os.getcwd(), 'logs')
      log_file = os.path.join(log_dir, 'samlspclient-{}.log'.format(date))
      if not os.path.isdir(log_dir):
        os.mkdir(log_dir)

      hdlr = logging.FileHandler(
        filename=log_file,
        encoding='utf-8'
        )
      hdlr.setLevel(logging.DEBUG)
      handler_list.append(hdlr)

    if "console" in log_method:
      hdlr = logging.StreamHandler(sys.stdout)
      hdlr.setLevel(logging.DEBUG)
      handler_list.append(hdlr)

    if not handler_list:
      return False

    logging.basicConfig(
      level=logging.DEBUG,
      format="%(asctime)s:%(levelname)s:%(message)s",
      handlers=handler_list,
      force=True,
      )

    return True
