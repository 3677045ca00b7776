import json
import unittest
from unittest.mock import MagicMock

from nexentastor.errors import (
    NefAuthError,
    NefDecodeError,
    NefNotFoundError,
    NefRemoteError,
)
from nexentastor.executor import RequestExecutor
from nexentastor.jobs import AsyncJob
from nexentastor.session import TokenSession
from nexentastor.tests.fake_appliance import FakeNefAppliance

EAUTH = (401, json.dumps({'code': 'EAUTH', 'message': "token expired"}).encode())
MONITOR = (202, json.dumps({'links': [{'rel': 'monitor', 'href': "/jobStatus/7"}]}).encode())


def mock_executor(*responses):
    session = MagicMock()
    session.rest_client.send.side_effect = list(responses)
    return RequestExecutor(session, job_poll_interval=0, job_timeout=5), session


class ReauthenticationTests(unittest.TestCase):
    def setUp(self):
        self.appliance = FakeNefAppliance(password="secret")
        self.executor = RequestExecutor(TokenSession(self.appliance, "admin", "secret"))

    def test_expired_token_is_renewed_and_request_resent_once(self):
        self.executor.execute_json('GET', "/storage/pools")
        self.appliance.expire_token()
        self.appliance.requests.clear()

        response = self.executor.execute_json('GET', "/storage/pools")

        self.assertEqual(response['data'], [{'poolName': "pool"}])
        self.assertEqual(self.appliance.logins, 2)
        # rejected request, login, resent request
        self.assertEqual(
            self.appliance.request_paths(),
            ["/storage/pools", "/auth/login", "/storage/pools"],
        )

    def test_second_auth_failure_is_surfaced(self):
        self.appliance.reject_tokens = True

        with self.assertRaises(NefAuthError):
            self.executor.execute('GET', "/storage/pools")

        self.assertEqual(self.appliance.request_paths('GET'), ["/storage/pools", "/storage/pools"])

    def test_other_errors_are_not_retried(self):
        with self.assertRaises(NefNotFoundError):
            self.executor.execute('DELETE', "/storage/filesystems/pool%2Fmissing")

        self.assertEqual(self.appliance.request_paths('DELETE'), ["/storage/filesystems/pool%2Fmissing"])


class ExecuteTests(unittest.TestCase):
    def test_success_returns_response_without_job(self):
        executor, _ = mock_executor((200, b'{"a": 1}'))
        response = executor.execute('GET', "/x")
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.job)

    def test_401_without_eauth_code_is_not_retried(self):
        executor, session = mock_executor((401, b'{"code": "EACCES", "message": "denied"}'))

        with self.assertRaises(NefRemoteError):
            executor.execute('GET', "/x")

        session.invalidate.assert_not_called()
        self.assertEqual(session.rest_client.send.call_count, 1)

    def test_accepted_request_returns_job(self):
        executor, _ = mock_executor(MONITOR)
        response = executor.execute('POST', "/storage/filesystems", {'path': "pool/fs"})

        self.assertIsInstance(response.job, AsyncJob)
        self.assertEqual(response.job.href, "/jobStatus/7")

    def test_accepted_request_without_monitor_link_is_decode_error(self):
        executor, _ = mock_executor((202, b'{"links": []}'))
        with self.assertRaises(NefDecodeError):
            executor.execute('POST', "/x")

    def test_unexplained_error_keeps_status_and_body(self):
        executor, _ = mock_executor((500, b"<html>oops</html>"))

        with self.assertRaises(NefRemoteError) as ctx:
            executor.execute('GET', "/x")

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.body, b"<html>oops</html>")
        self.assertIn("oops", str(ctx.exception))

    def test_execute_json_rejects_empty_and_invalid_bodies(self):
        for raw in (b"", b"{not json"):
            with self.subTest(raw=raw):
                executor, _ = mock_executor((200, raw))
                with self.assertRaises(NefDecodeError):
                    executor.execute_json('GET', "/x")


if __name__ == '__main__':
    unittest.main()
