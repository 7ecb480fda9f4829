import unittest

from botocore.exceptions import ClientError, NoCredentialsError

from us3_service.errors import (
    ObjectNotExistError,
    PairUnsupportedError,
    PermissionDeniedError,
    UnexpectedError,
    error_code,
    format_error,
)


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "HeadObject")


class FormatErrorTests(unittest.TestCase):
    def test_access_denied_maps_to_permission_denied(self):
        original = client_error("AccessDenied")

        formatted = format_error(original)

        self.assertIsInstance(formatted, PermissionDeniedError)
        self.assertIs(original, formatted.__cause__)

    def test_no_such_key_maps_to_object_not_exist(self):
        for code in ["NoSuchKey", "404"]:
            with self.subTest(code=code):
                self.assertIsInstance(format_error(client_error(code)), ObjectNotExistError)

    def test_other_codes_map_to_unexpected(self):
        original = client_error("SlowDown")

        formatted = format_error(original)

        self.assertIsInstance(formatted, UnexpectedError)
        self.assertIs(original, formatted.__cause__)

    def test_errors_without_code_map_to_unexpected(self):
        for original in [NoCredentialsError(), ValueError("bad size"), ClientError({}, "ListObjectsV2")]:
            with self.subTest(error=type(original).__name__):
                formatted = format_error(original)
                self.assertIsInstance(formatted, UnexpectedError)
                self.assertIs(original, formatted.__cause__)

    def test_normalizing_twice_returns_same_error(self):
        once = format_error(client_error("AccessDenied"))

        self.assertIs(once, format_error(once))

    def test_internal_errors_pass_through(self):
        original = PairUnsupportedError("object_mode", 2)

        self.assertIs(original, format_error(original))

    def test_error_code(self):
        self.assertEqual("NoSuchKey", error_code(client_error("NoSuchKey")))
        self.assertIsNone(error_code(ValueError("x")))


class ErrorContextTests(unittest.TestCase):
    def test_first_context_wins(self):
        err = format_error(client_error("NoSuchKey"))

        err.add_context(op="stat", target="Storager us3", paths=("a.txt",))
        err.add_context(op="list", target="other", paths=())

        self.assertEqual("stat", err.op)
        self.assertEqual(("a.txt",), err.paths)
        self.assertTrue(str(err).startswith("stat ['a.txt'] on Storager us3: "))


if __name__ == "__main__":
    unittest.main()
