import json
import unittest

from nexentastor.errors import (
    NefAlreadyExistsError,
    NefAuthError,
    NefError,
    NefInUseError,
    NefNotFoundError,
    NefRemoteError,
    NefValidationError,
    classify,
    is_already_exists,
    is_auth_error,
    is_in_use,
    is_not_found,
)


def body(code, message):
    return json.dumps({'code': code, 'message': message}).encode()


class ClassifyTests(unittest.TestCase):
    def test_known_codes_map_to_classes(self):
        cases = {
            'EAUTH': NefAuthError,
            'ENOENT': NefNotFoundError,
            'EEXIST': NefAlreadyExistsError,
            'EBUSY': NefInUseError,
        }
        for code, error_class in cases.items():
            with self.subTest(code=code):
                error = classify(body(code, "boom"), 409)
                self.assertIsInstance(error, error_class)
                self.assertEqual(error.code, code)
                self.assertEqual(error.status_code, 409)
                self.assertEqual(error.message, "Request error: boom")

    def test_unknown_code_is_remote_error_with_body(self):
        raw = body('EPERM', "not allowed")
        error = classify(raw, 403)

        self.assertIsInstance(error, NefRemoteError)
        self.assertEqual(error.code, 'EPERM')
        self.assertEqual(error.body, raw)

    def test_prefix_is_prepended(self):
        error = classify(body('EAUTH', "bad password"), 401, prefix="Login failed")
        self.assertEqual(str(error), "Login failed: bad password")

    def test_bodies_without_explanation_are_not_classified(self):
        for raw in (b"", None, b"not json", b"[1, 2]", b'{"code": "EBUSY"}', b'{"message": ""}'):
            with self.subTest(raw=raw):
                self.assertIsNone(classify(raw, 500))

    def test_classification_ignores_message_text(self):
        """Only the code decides, a message mentioning another code changes nothing."""
        error = classify(body('ENOENT', "resource is busy (EBUSY)"), 404)

        self.assertTrue(is_not_found(error))
        self.assertFalse(is_in_use(error))


class PredicateTests(unittest.TestCase):
    def test_predicates_match_exact_code(self):
        self.assertTrue(is_auth_error(NefError("x", code='EAUTH')))
        self.assertTrue(is_not_found(NefError("x", code='ENOENT')))
        self.assertTrue(is_already_exists(NefError("x", code='EEXIST')))
        self.assertTrue(is_in_use(NefError("x", code='EBUSY')))
        self.assertFalse(is_in_use(NefError("x", code='EBUSYX')))

    def test_predicates_accept_non_errors(self):
        self.assertFalse(is_not_found(None))
        self.assertFalse(is_auth_error(ValueError("EAUTH")))

    def test_validation_error_code(self):
        error = NefValidationError("limit must be positive")
        self.assertEqual(error.code, 'EINVAL')
        self.assertIsNone(error.status_code)


if __name__ == '__main__':
    unittest.main()
