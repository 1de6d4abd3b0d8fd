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
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from OpenSSL import crypto
import base64
import binascii
import logging
import random


class CryptoTools:
  """ Outils de manipulation des clés et certificats

  Le certificat de l'IdP est fourni soit en PEM, soit directement en base64 (c'est ce qu'on copie
    depuis les métadonnées d'un IdP, le contenu de l'élément ds:X509Certificate)
  """


  def load_certificate(text:str) -> x509.Certificate:
    """ Charge un certificat X.509 donné en PEM ou en base64 sans en-tête

    Args:
      text: certificat PEM (-----BEGIN CERTIFICATE----- ...) ou base64 du DER

    Returns:
      certificat cryptography

    Raises:
      ConfigurationError si le certificat ne peut être lu
    """

    lines = []
    for line in text.strip().splitlines():
      line = line.strip()
      if not line.startswith('-----'):
        lines.append(line)
    body = ''.join(lines)
    if body == '':
      raise ConfigurationError('Empty IdP certificate', reason=Reason.INVALID_CERTIFICATE)

    try:
      der = base64.b64decode(body, validate=True)
      certificate = x509.load_der_x509_certificate(der)
    except (binascii.Error, ValueError) as error:
      raise ConfigurationError('Invalid IdP certificate: '+str(error), reason=Reason.INVALID_CERTIFICATE) from error

    return certificate


  def certificate_pem(certificate:x509.Certificate) -> bytes:
    """ Retourne le PEM d'un certificat, format attendu par xmlsec
    """
    return certificate.public_bytes(serialization.Encoding.PEM)


  def generate_key_self_signed(common_name:str='SAMLSPClient', key_size:int=2048):
    """Génère un biclé RSA et retourne la clé et un certificat auto-signé en PEM

    Utilisé pour fabriquer des clés de démonstration (IdP de test) et par les tests

    Args:
      common_name: CN du certificat
      key_size: taille de la clé RSA

    Returns:
      (clé privée en PEM, certificat autosigné en PEM)

    Versions:
      19/10/2026 version initiale
    """

    key_pair = crypto.PKey()
    key_pair.generate_key(crypto.TYPE_RSA, key_size)

    cert = crypto.X509()
    cert.set_version(2)
    cert.get_subject().C = 'FR'
    cert.get_subject().L = 'Paris'
    cert.get_subject().O = 'Aduneo'
    cert.get_subject().CN = common_name
    cert.set_serial_number(random.randrange(1208925819614629174706176))
    cert.gmtime_adj_notBefore(0)
    cert.gmtime_adj_notAfter(10*365*24*60*60)
    cert.set_issuer(cert.get_subject())
    cert.set_pubkey(key_pair)
    cert.sign(key_pair, 'sha256')

    private_key = crypto.dump_privatekey(crypto.FILETYPE_PEM, key_pair).decode("utf-8")
    certificate = crypto.dump_certificate(crypto.FILETYPE_PEM, cert).decode("utf-8")

    return (private_key, certificate)


  def generate_self_signed_certificate(common_name:str, key_file_path:str, cert_file_path:str):
    """ Génère une biclé RSA et un certificat autosigné correspondant

    Enregistre la clé privée dans key_file_path et le certificat dans cert_file_path

    Args:
      common_name: CN du certificat
      key_file_path: chemin complet du fichier recevant la clé privée
      cert_file_path: chemin complet du fichier recevant le certificat
    """

    (private_key, certificate) = CryptoTools.generate_key_self_signed(common_name)

    with open(key_file_path, 'w') as out_file:
      out_file.write(private_key)

    with open(cert_file_path, 'w') as out_file:
      out_file.write(certificate)

    logging.info('Self-signed key pair written to '+key_file_path+' and '+cert_file_path)
