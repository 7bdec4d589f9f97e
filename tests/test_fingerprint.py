"""
Tests for Error Fingerprinting
"""
import pytest

from app.exceptions import InvalidInputError
from app.services.fingerprint import (
    generate_fingerprint, normalize_message, stack_signature, validate_fingerprint
)


PY_STACK = '''Traceback (most recent call last):
  File "/srv/app/views.py", line 42, in checkout
    total = cart.total()
  File "/srv/app/cart.py", line 17, in total
    return sum(item.price for item in self.items)
TypeError: unsupported operand type(s)'''


class TestGenerateFingerprint:
    """Tests for generate_fingerprint"""

    def test_deterministic(self):
        """Same input always yields the same key"""
        first = generate_fingerprint('TypeError', 'bad operand', PY_STACK)
        second = generate_fingerprint('TypeError', 'bad operand', PY_STACK)
        assert first == second

    def test_known_digests(self):
        """Keys stay stable across processes and releases"""
        assert generate_fingerprint('NullPointerException', 'obj is null') == \
            'def50c7bfdc222b4214cc4bbb8d717c0'

        stack = 'at com.shop.Cart.total(Cart.java:88)\nat com.shop.Checkout.run(Checkout.java:21)'
        assert generate_fingerprint('NullPointerException', 'Cart was null', stack) == \
            'd907c560712aa3811dd18b173ff43608'

    def test_length_and_hex(self):
        fp = generate_fingerprint('TypeError', 'bad operand')
        assert len(fp) == 32
        int(fp, 16)

    def test_different_titles_differ(self):
        assert generate_fingerprint('TypeError', 'boom') != generate_fingerprint('ValueError', 'boom')

    def test_different_messages_differ(self):
        assert generate_fingerprint('TypeError', 'boom') != generate_fingerprint('TypeError', 'bang')

    def test_stack_participates(self):
        """Different call sites are different issues"""
        other_stack = PY_STACK.replace('checkout', 'refund')
        assert generate_fingerprint('TypeError', 'boom', PY_STACK) != \
            generate_fingerprint('TypeError', 'boom', other_stack)

    def test_missing_stack_equals_empty_stack(self):
        assert generate_fingerprint('TypeError', 'boom', None) == generate_fingerprint('TypeError', 'boom', '')

    def test_line_numbers_ignored(self):
        """Redeploys that shift line numbers keep grouping"""
        shifted = PY_STACK.replace('line 42', 'line 57').replace('line 17', 'line 19')
        assert generate_fingerprint('TypeError', 'boom', PY_STACK) == \
            generate_fingerprint('TypeError', 'boom', shifted)

    def test_js_positions_ignored(self):
        stack_a = 'at render (bundle.js:10:200)\nat update (bundle.js:55:3)'
        stack_b = 'at render (bundle.js:12:96)\nat update (bundle.js:57:8)'
        assert generate_fingerprint('TypeError', 'x is undefined', stack_a) == \
            generate_fingerprint('TypeError', 'x is undefined', stack_b)

    def test_only_leading_frames_count(self):
        """Frames past the third do not change the key"""
        base = 'frame one\nframe two\nframe three'
        assert generate_fingerprint('E', 'm', base + '\nframe four') == \
            generate_fingerprint('E', 'm', base + '\nsomething else entirely')

    def test_memory_addresses_ignored(self):
        a = generate_fingerprint('RuntimeError', '<Worker object at 0x7f3a2b1c>')
        b = generate_fingerprint('RuntimeError', '<Worker object at 0x10ffee00>')
        assert a == b

    def test_uuids_ignored(self):
        a = generate_fingerprint('NotFound', 'order 3f2b8c1e-9d4a-4b7e-8c2f-1a2b3c4d5e6f missing')
        b = generate_fingerprint('NotFound', 'order 0a1b2c3d-4e5f-6789-abcd-ef0123456789 missing')
        assert a == b

    def test_whitespace_collapsed(self):
        assert generate_fingerprint('E', 'connection   reset\tby peer') == \
            generate_fingerprint('E', ' connection reset by peer ')

    def test_only_first_message_line_counts(self):
        assert generate_fingerprint('E', 'timeout\nattempt 1') == generate_fingerprint('E', 'timeout\nattempt 2')

    @pytest.mark.parametrize('title,message', [
        ('', 'message'),
        ('   ', 'message'),
        ('Title', ''),
        (None, 'message'),
        ('Title', None),
    ])
    def test_empty_input_rejected(self, title, message):
        with pytest.raises(InvalidInputError):
            generate_fingerprint(title, message)


class TestNormalization:
    """Tests for the normalization helpers"""

    def test_normalize_message_truncates(self):
        assert len(normalize_message('x' * 500)) == 200

    def test_normalize_message_first_line(self):
        assert normalize_message('first\nsecond') == 'first'

    def test_stack_signature_masks_python_lines(self):
        sig = stack_signature('File "a.py", line 12, in f')
        assert 'line ?' in sig
        assert '12' not in sig

    def test_stack_signature_empty(self):
        assert stack_signature(None) == ''
        assert stack_signature('') == ''


class TestValidateFingerprint:
    """Tests for caller-supplied fingerprints"""

    def test_accepts_and_strips(self):
        assert validate_fingerprint('  checkout-timeout ') == 'checkout-timeout'

    def test_rejects_blank(self):
        with pytest.raises(InvalidInputError):
            validate_fingerprint('   ')

    def test_rejects_too_long(self):
        with pytest.raises(InvalidInputError):
            validate_fingerprint('a' * 65)

    def test_accepts_max_length(self):
        assert validate_fingerprint('a' * 64) == 'a' * 64
