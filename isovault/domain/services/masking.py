# isovault/domain/services/masking.py
from isovault.infra.crypto.pan_cipher import PanCipher

MASK = "****"
VISIBLE_DIGITS = 4


def mask_pan(pan: str) -> str:
    """Primeros 4 + '****' + últimos 4. Valores de 8 o menos se devuelven tal cual."""
    if len(pan) > 2 * VISIBLE_DIGITS:
        return pan[:VISIBLE_DIGITS] + MASK + pan[-VISIBLE_DIGITS:]
    return pan


def mask_encrypted_pan(blob: str, cipher: PanCipher) -> str:
    # DecryptionError se propaga: nunca devolvemos un enmascarado engañoso
    return mask_pan(cipher.decrypt(blob))
