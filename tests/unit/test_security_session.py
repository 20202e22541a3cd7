"""
Unit tests for CipherSession.
"""

import pytest
from unittest.mock import patch

from modelvault.core.exceptions import (
    CipherFinalizeError,
    CipherInitError,
    KeyMaterialUnsetError,
    MalformedCiphertextError,
    PaddingError,
    SessionReuseError,
)
from modelvault.security.keys import KeyMaterial
from modelvault.security.session import CipherSession, Direction, SessionState


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def key_material():
    return KeyMaterial.from_bytes(b"\x01" * 32, b"\x02" * 16)


def _encrypt(km, data):
    with CipherSession(km, Direction.ENCRYPT) as s:
        return s.update(data) + s.finalize()


# ==============================================================================
# Tests: State Machine
# ==============================================================================

def test_states_progress_and_close(key_material):
    s = CipherSession(key_material, Direction.ENCRYPT)
    assert s.state is SessionState.INITIALIZED
    s.update(b"abc")
    assert s.state is SessionState.UPDATING
    s.finalize()
    assert s.state is SessionState.FINALIZED
    s.close()
    assert s.state is SessionState.CLOSED
    assert s._context is None
    assert s._key_material is None


def test_close_is_idempotent(key_material):
    s = CipherSession(key_material, Direction.DECRYPT)
    s.close()
    s.close()
    assert s.state is SessionState.CLOSED


def test_update_after_finalize_raises(key_material):
    s = CipherSession(key_material, Direction.ENCRYPT)
    s.finalize()
    with pytest.raises(SessionReuseError):
        s.update(b"more")


def test_finalize_twice_raises(key_material):
    s = CipherSession(key_material, Direction.ENCRYPT)
    s.finalize()
    with pytest.raises(SessionReuseError):
        s.finalize()


def test_use_after_close_raises(key_material):
    with CipherSession(key_material, Direction.ENCRYPT) as s:
        pass
    with pytest.raises(SessionReuseError):
        s.update(b"data")


def test_context_manager_closes_on_error(key_material):
    with pytest.raises(MalformedCiphertextError):
        with CipherSession(key_material, Direction.DECRYPT) as s:
            s.update(b"\x00" * 5)
            s.finalize()
    assert s.state is SessionState.CLOSED


def test_failed_finalize_still_blocks_reuse(key_material):
    s = CipherSession(key_material, Direction.DECRYPT)
    with pytest.raises(MalformedCiphertextError):
        s.finalize()
    with pytest.raises(SessionReuseError):
        s.finalize()


# ==============================================================================
# Tests: Initialization
# ==============================================================================

def test_unset_key_material_refused():
    with pytest.raises(KeyMaterialUnsetError):
        CipherSession(KeyMaterial(), Direction.ENCRYPT)


def test_unset_key_material_is_an_init_error():
    with pytest.raises(CipherInitError):
        CipherSession(KeyMaterial(), Direction.DECRYPT)


def test_backend_init_failure_wrapped(key_material):
    with patch("modelvault.security.session.Cipher", side_effect=ValueError("bad key")):
        with pytest.raises(CipherInitError, match="bad key"):
            CipherSession(key_material, Direction.ENCRYPT)


# ==============================================================================
# Tests: Encrypt / Decrypt
# ==============================================================================

def test_small_update_is_buffered(key_material):
    with CipherSession(key_material, Direction.ENCRYPT) as s:
        assert s.update(b"x" * 10) == b""
        assert len(s.finalize()) == 16


def test_roundtrip_in_odd_pieces(key_material):
    data = bytes(range(256)) * 3
    ct = _encrypt(key_material, data)
    out = b""
    with CipherSession(key_material, Direction.DECRYPT) as s:
        for i in range(0, len(ct), 7):
            out += s.update(ct[i:i + 7])
        out += s.finalize()
    assert out == data


def test_block_aligned_plaintext_gets_full_padding_block(key_material):
    assert len(_encrypt(key_material, b"\x00" * 32)) == 48


def test_decrypt_empty_is_malformed(key_material):
    with CipherSession(key_material, Direction.DECRYPT) as s:
        with pytest.raises(MalformedCiphertextError):
            s.finalize()


def test_decrypt_partial_block_is_malformed(key_material):
    ct = _encrypt(key_material, b"hello world")
    with CipherSession(key_material, Direction.DECRYPT) as s:
        s.update(ct[:-1])
        with pytest.raises(MalformedCiphertextError):
            s.finalize()


def test_malformed_is_a_padding_error(key_material):
    with CipherSession(key_material, Direction.DECRYPT) as s:
        s.update(b"\x00" * 17)
        with pytest.raises(PaddingError):
            s.finalize()


def test_bad_padding_detected(key_material):
    ct = _encrypt(key_material, b"A" * 16 + b"B" * 16)
    with CipherSession(key_material, Direction.DECRYPT) as s:
        # without the padding block the final byte is 0x42, an invalid pad length
        s.update(ct[:32])
        with pytest.raises(PaddingError, match="padding"):
            s.finalize()


def test_finalize_backend_failure_wrapped(key_material):
    s = CipherSession(key_material, Direction.ENCRYPT)
    with patch.object(s, "_context") as ctx:
        ctx.update.return_value = b""
        ctx.finalize.side_effect = ValueError("backend exploded")
        with pytest.raises(CipherFinalizeError, match="backend exploded"):
            s.finalize()
    s.close()
