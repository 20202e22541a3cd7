"""
Exceptions for ModelVault
Everything derives from ModelVaultError so callers have one general catcher
"""


class ModelVaultError(Exception):
    # general container for errors
    pass


# ----------------------------------------------------------------------
# Cipher pipeline
# ----------------------------------------------------------------------

class CipherError(ModelVaultError):
    # raised by the streaming cipher engine and its sessions
    pass


class IoReadError(CipherError):
    # raised when the source stream cannot be opened or read
    pass


class IoWriteError(CipherError):
    # raised when the sink stream cannot be opened or written
    pass


class CipherInitError(CipherError):
    # raised when a cipher context cannot be set up with the given key/IV
    pass


class KeyMaterialUnsetError(CipherInitError):
    # raised when a cipher operation is attempted with the all-zero key material
    pass


class CipherFinalizeError(CipherError):
    # raised when finalizing a cipher context fails for a non-padding reason
    pass


class PaddingError(CipherError):
    # raised when PKCS#7 padding is invalid (wrong key, wrong IV, corrupted data)
    pass


class MalformedCiphertextError(PaddingError):
    # raised when ciphertext is empty or not a multiple of the block size
    pass


class SessionReuseError(CipherError):
    # raised when a finalized or closed session is used again
    pass


# ----------------------------------------------------------------------
# Key material
# ----------------------------------------------------------------------

class KeyMaterialError(ModelVaultError):
    # raised for malformed key material
    pass


class InvalidKeyLength(KeyMaterialError, ValueError):
    # raised when a key is not exactly KEY_LENGTH bytes
    pass


class InvalidIvLength(KeyMaterialError, ValueError):
    # raised when an IV is not exactly IV_LENGTH bytes
    pass


class RandomSourceError(KeyMaterialError):
    # raised when the OS random source cannot supply the requested bytes
    pass


# ----------------------------------------------------------------------
# Loader
# ----------------------------------------------------------------------

class LoadError(ModelVaultError):
    """Base for failures of ``ProtectedModelLoader.load_encrypted``.

    ``path`` is the encrypted file that was being loaded and ``cause`` the
    underlying exception, treated as opaque data.
    """

    def __init__(self, path, cause: BaseException):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"{self.path}: {cause}")


class DecryptionFailed(LoadError):
    # raised/returned when the cipher pipeline failed
    pass


class ParseFailed(LoadError):
    # raised/returned when the deserializer rejected the plaintext
    pass
