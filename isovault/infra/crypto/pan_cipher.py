# isovault/infra/crypto/pan_cipher.py
"""
Cifrado simétrico del PAN en reposo.

Formato almacenado (texto):

    base64( base64(ciphertext) || "::" || iv )

El ciphertext interno va en base64, así que nunca contiene ":" y el primer
"::" del blob decodificado es siempre el separador, aunque los bytes crudos
del IV lo contengan.

Modos:
  - "cbc": AES-256-CBC + PKCS7, IV aleatorio de 16 bytes. Sin integridad:
    un blob manipulado puede descifrar a basura o fallar en el padding.
  - "gcm": AES-256-GCM, nonce aleatorio de 12 bytes; el tag va pegado al
    ciphertext y cualquier manipulación se detecta como DecryptionError.
"""
import base64
import binascii
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from isovault.domain.exceptions import DecryptionError

logger = logging.getLogger(__name__)

DELIMITER = b"::"
KEY_SIZE = 32
CBC_IV_SIZE = 16
GCM_NONCE_SIZE = 12


class PanCipher:
    def __init__(self, key: bytes, mode: str = "cbc"):
        if len(key) != KEY_SIZE:
            raise ValueError("AES-256 requires a 32 byte key")
        if mode not in ("cbc", "gcm"):
            raise ValueError(f"Unsupported cipher mode: {mode}")
        self._key = key
        self.mode = mode

    @property
    def iv_size(self) -> int:
        return CBC_IV_SIZE if self.mode == "cbc" else GCM_NONCE_SIZE

    def encrypt(self, plaintext: str) -> str:
        # IV nuevo en cada llamada: el mismo PAN nunca produce el mismo blob
        iv = os.urandom(self.iv_size)
        data = plaintext.encode("utf-8")

        if self.mode == "gcm":
            ciphertext = AESGCM(self._key).encrypt(iv, data, None)
        else:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(data) + padder.finalize()
            encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()

        combined = base64.b64encode(ciphertext) + DELIMITER + iv
        return base64.b64encode(combined).decode("ascii")

    def decrypt(self, blob: str) -> str:
        try:
            decoded = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise DecryptionError("Encrypted PAN is not valid base64") from e

        encoded_ciphertext, sep, iv = decoded.partition(DELIMITER)
        if not sep:
            raise DecryptionError("Encrypted PAN has no IV delimiter")
        if len(iv) != self.iv_size:
            raise DecryptionError("Encrypted PAN has an IV of the wrong size")

        try:
            ciphertext = base64.b64decode(encoded_ciphertext, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecryptionError("Encrypted PAN ciphertext is not valid base64") from e

        try:
            if self.mode == "gcm":
                data = AESGCM(self._key).decrypt(iv, ciphertext, None)
            else:
                decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
                padded = decryptor.update(ciphertext) + decryptor.finalize()
                unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
                data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except InvalidTag as e:
            raise DecryptionError("Encrypted PAN failed authentication") from e
        except (ValueError, UnicodeDecodeError) as e:
            # padding inválido, longitud no múltiplo del bloque o bytes basura
            raise DecryptionError("Encrypted PAN could not be decrypted") from e


def build_pan_cipher(settings) -> PanCipher:
    logger.info(f"PAN cipher configurado: AES-256-{settings.PAN_CIPHER_MODE.upper()}")
    return PanCipher(settings.pan_key_bytes, settings.PAN_CIPHER_MODE)
