import unittest
from unittest.mock import MagicMock, patch

from nexentastor.errors import NefDecodeError, NefJobTimeoutError, NefRemoteError
from nexentastor.executor import ApplianceResponse
from nexentastor.jobs import AsyncJob, parse_monitor_href


class ParseMonitorHrefTests(unittest.TestCase):
    def test_monitor_link_is_found(self):
        body = b'{"links": [{"rel": "self", "href": "/a"}, {"rel": "monitor", "href": "/jobStatus/1"}]}'
        self.assertEqual(parse_monitor_href(body), "/jobStatus/1")

    def test_missing_link_is_decode_error(self):
        for body in (b"", b"nope", b'{"links": [{"rel": "self", "href": "/a"}]}', b'[]'):
            with self.subTest(body=body):
                with self.assertRaises(NefDecodeError):
                    parse_monitor_href(body)


class AsyncJobTests(unittest.TestCase):
    def executor(self, *statuses):
        executor = MagicMock()
        executor.execute.side_effect = [ApplianceResponse(status, b"") for status in statuses]
        return executor

    @patch('nexentastor.jobs.time.sleep')
    def test_wait_polls_until_done(self, sleep):
        executor = self.executor(202, 202, 201)
        job = AsyncJob(executor, "/jobStatus/1", poll_interval=1, timeout=60)

        job.wait()

        self.assertTrue(job.done)
        self.assertEqual(executor.execute.call_count, 3)
        executor.execute.assert_called_with('GET', "/jobStatus/1")
        self.assertEqual(sleep.call_count, 2)

    @patch('nexentastor.jobs.time.sleep')
    def test_wait_times_out(self, sleep):
        executor = MagicMock()
        executor.execute.return_value = ApplianceResponse(202, b"")
        job = AsyncJob(executor, "/jobStatus/2", poll_interval=5, timeout=1)

        with self.assertRaises(NefJobTimeoutError) as ctx:
            job.wait()

        self.assertEqual(ctx.exception.href, "/jobStatus/2")
        self.assertFalse(job.done)
        sleep.assert_not_called()

    def test_failed_job_raises_its_error(self):
        executor = MagicMock()
        executor.execute.side_effect = NefRemoteError("Request error: pool is faulted", code="EIO")
        job = AsyncJob(executor, "/jobStatus/3", poll_interval=0, timeout=1)

        with self.assertRaises(NefRemoteError):
            job.wait()


if __name__ == '__main__':
    unittest.main()
