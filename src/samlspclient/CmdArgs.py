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

import sys

class CmdArgs:
  """
  Analyse les arguments de la ligne de commande et les restitue en fonction des besoins du script

  Les arguments doivent être de la forme :
  -arg1 valeur -arg2

  Les besoins du script sont décrits dans un table avec
  - clé : nom de l'argument (sans le tiret) - attention la casse est importante
  - valeur : type(valeurs acceptées)[valeur par défaut]

  Les types suivants sont autorisés
  - string
  - int
  - option(val1, valn)
  - switch (valeur booléenne avec valeur false par défaut. Si l'argument est donné, la valeur est true)

  Exemple :
  {'conf': 'string[conf/samlsp.cnf]', 'slack': 'int', 'log': 'option(console,file)[console]', 'verbose': 'switch'}

  Une valeur égale à - est acceptée (elle désigne en général l'entrée standard)

  Lève ValueError si la définition ou la ligne de commande sont incorrectes
  """

  TYPES = ('string', 'int', 'option', 'switch')

  def __init__(self, accepted_params:dict, argv:list=None):

    self.accepted_params = accepted_params
    self.argv = sys.argv[1:] if argv is None else argv
    self.parsed_args = {}

    self._parse()


  def _parse(self):

    self.parsed_args = {}
    args_format = {}

    # peuplement d'après les valeurs par défaut
    for arg, definition in self.accepted_params.items():

      accepted_values = None
      default_value = None
      argument_type = definition

      bracket_o_pos = definition.find('[')
      if bracket_o_pos > 0:
        if not definition.endswith(']'):
          raise ValueError("argument definition incorrect for argument %s: no closing bracket" % arg)
        default_value = definition[bracket_o_pos+1:-1]
        argument_type = definition[:bracket_o_pos]

      parenthesis_o_pos = argument_type.find('(')
      if parenthesis_o_pos > 0:
        if not argument_type.endswith(')'):
          raise ValueError("argument definition incorrect for argument %s: no closing parenthesis" % arg)
        accepted_values = argument_type[parenthesis_o_pos+1:-1].replace(' ', '').split(',')
        argument_type = argument_type[:parenthesis_o_pos]

      if argument_type not in self.TYPES:
        raise ValueError("argument definition incorrect for argument %s: type %s unknown" % (arg, argument_type))

      if argument_type == 'switch':
        self.parsed_args[arg] = False
        if default_value:
          if default_value.casefold() not in ('false', 'true'):
            raise ValueError('default value for argument "'+arg+'" unknown. "'+arg+'" is a switch, therefore expected values are "false" and "true"')
          self.parsed_args[arg] = (default_value.casefold() == 'true')
      elif default_value is not None:
        self.parsed_args[arg] = int(default_value) if argument_type == 'int' else default_value

      args_format[arg] = {'type': argument_type, 'accepted_values': accepted_values}

    # peuplement complémentaire par la ligne de commandes
    iarg = 0
    while iarg < len(self.argv):
      arg = self.argv[iarg]
      if not arg.startswith('-') or arg == '-':
        raise ValueError("syntax error, an argument should start with a dash, %s found" % arg)
      arg = arg[1:]
      if arg not in self.accepted_params:
        raise ValueError("unknown argument %s" % arg)

      argument_type = args_format[arg]['type']

      if argument_type == 'switch':
        self.parsed_args[arg] = True
      else:
        iarg += 1
        if iarg == len(self.argv):
          raise ValueError("argument %s without a value" % arg)
        value = self.argv[iarg]

        if argument_type == 'int':
          try:
            self.parsed_args[arg] = int(value)
          except ValueError:
            raise ValueError("value %s not an integer for argument %s" % (value, arg)) from None
        elif argument_type == 'option':
          if value not in args_format[arg]['accepted_values']:
            raise ValueError("value %s not valid for argument %s" % (value, arg))
          self.parsed_args[arg] = value
        else:
          self.parsed_args[arg] = value

      iarg += 1
