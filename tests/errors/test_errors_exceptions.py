import unittest

from offlinesync.errors.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    HttpErrorInfo,
    NotFoundError,
    OfflineSyncError,
    PermissionError,
    RateLimitError,
    RemoteRejectedError,
    UnresolvedReferenceError,
    ValidationError,
    map_http_error,
)


class TestExceptions(unittest.TestCase):
    def test_base_error_keeps_details_and_cause(self) -> None:
        cause = RuntimeError("root")
        err = OfflineSyncError("msg", details={"k": "v"}, cause=cause)
        self.assertEqual(str(err), "msg")
        self.assertEqual(err.details["k"], "v")
        self.assertIs(err.cause, cause)

    def test_base_error_details_default_to_empty_dict(self) -> None:
        self.assertEqual(OfflineSyncError("msg").details, {})

    def test_unresolved_reference_error_carries_local_ids(self) -> None:
        err = UnresolvedReferenceError(["local_a", "local_b"])
        self.assertEqual(err.local_ids, ["local_a", "local_b"])
        self.assertEqual(err.details["local_ids"], ["local_a", "local_b"])
        self.assertIn("local_a", str(err))

    def test_map_http_error_basic(self) -> None:
        cases = {
            400: ValidationError,
            422: ValidationError,
            401: AuthError,
            403: PermissionError,
            404: NotFoundError,
            409: ConflictError,
            412: ConflictError,
            429: RateLimitError,
        }
        for status, expected in cases.items():
            with self.subTest(status=status):
                err = map_http_error(HttpErrorInfo(status_code=status, message="m"))
                self.assertIsInstance(err, expected)
                self.assertIsInstance(err, RemoteRejectedError)
                self.assertEqual(err.details["status_code"], status)

    def test_map_http_error_5xx_is_api_error(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=503, message="unavail"))
        self.assertIsInstance(err, ApiError)
        self.assertNotIsInstance(err, RemoteRejectedError)

    def test_map_http_error_default_message_and_cause(self) -> None:
        cause = RuntimeError("x")
        err = map_http_error(HttpErrorInfo(status_code=418), cause=cause)
        self.assertIsInstance(err, ApiError)
        self.assertEqual(str(err), "HTTP error 418")
        self.assertIs(err.cause, cause)


if __name__ == "__main__":
    unittest.main()
