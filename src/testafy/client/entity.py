"""The ``Test`` entity: one behavioral script and the state of its latest run.

A ``Test`` pairs an immutable :class:`~testafy.config.TestConfig` with a
:class:`~testafy.client.models.TestRun` value. Lifecycle operations never
edit the run in place; they swap in a new value, and ``submit`` replaces
it wholesale with the identity of the new server-side run.

Typical use::

    async with Test(TestConfig(login_name="me", password="pw",
                               base_uri="https://app.testafy.com/api/v0/")) as test:
        await test.run_and_wait()
        print(await test.passed(), await test.failed(), await test.planned())
        print(await test.results_string())
"""

import asyncio
from typing import Any, Optional

import httpx
import structlog

from testafy.client.models import ParsedResponse, ResultLine, RunStats, TestRun, TestStatus
from testafy.client.poller import wait_until_done
from testafy.client.results import decode_results, join_results
from testafy.client.routes import Operation, route
from testafy.client.transport import Transport
from testafy.config import TestConfig
from testafy.errors import ClientRequestError, ConfigurationError, ServerError

logger = structlog.get_logger(__name__)


class Test:
    """Drives runs of one behavioral script against the Testafy service.

    Args:
        config: Test configuration. When omitted, ``TestConfig`` is built
            from the keyword arguments.
        http_client: Optional ``httpx.AsyncClient`` to send requests with.
        **config_kwargs: Fields for ``TestConfig`` when ``config`` is None.
    """

    __test__ = False

    def __init__(
        self,
        config: Optional[TestConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        **config_kwargs: Any,
    ) -> None:
        if config is None:
            config = TestConfig(**config_kwargs)
        elif config_kwargs:
            config = config.with_overrides(**config_kwargs)
        self.config = config
        self._transport = Transport(
            config.base_uri,
            timeout=config.request_timeout,
            http_client=http_client,
        )
        self._run = TestRun()

    # ── lifecycle ────────────────────────────────────────────────────

    async def __aenter__(self) -> "Test":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self._transport.aclose()

    # ── state ────────────────────────────────────────────────────────

    @property
    def run_state(self) -> TestRun:
        return self._run

    @property
    def test_id(self) -> Optional[str]:
        return self._run.test_id

    @property
    def message(self) -> Optional[str]:
        return self._run.last_message

    @property
    def error(self) -> Optional[str]:
        return self._run.last_error

    def attach(self, test_id: str) -> TestRun:
        """Start observing an existing server-side run by its id."""
        self._run = TestRun(test_id=test_id, status=TestStatus.UNKNOWN)
        return self._run

    # ── low-level request ────────────────────────────────────────────

    def _ensure_configured(self) -> None:
        if not self.config.is_configured:
            raise ConfigurationError("There's no base URI! Set base_uri before calling the API.")

    async def _call(self, operation: Operation, params: dict[str, Any]) -> ParsedResponse:
        path = route(operation, self.config.account_mode)
        try:
            return await self._transport.execute(
                path,
                params,
                auth=self.config.credentials(),
            )
        except ClientRequestError as exc:
            self._run = self._run.with_error(exc.message)
            raise

    def _run_params(self) -> dict[str, Any]:
        return {"trt_id": self._run.test_id}

    # ── run lifecycle ────────────────────────────────────────────────

    async def submit(self) -> Optional[str]:
        """Start a new run and return its id without waiting for it.

        Returns ``None`` when the server acknowledged the request but did
        not issue a test id; the run then counts as not submitted.
        """
        self._ensure_configured()

        params: dict[str, Any] = {"pbehave": self.config.script, "asynchronous": True}
        if self.config.product:
            params["product"] = self.config.product
        if self.config.want_screenshots:
            params["screenshots"] = True

        response = await self._call(Operation.RUN, params)
        test_id = response.get("test_run_test_id")

        if test_id is None:
            self._run = TestRun().observe(response)
            await logger.awarning(
                "test_submit_without_id",
                message=response.message,
                error=response.error,
            )
            return None

        self._run = TestRun(test_id=str(test_id), status=TestStatus.UNKNOWN).observe(response)
        await logger.ainfo(
            "test_submitted",
            test_id=self._run.test_id,
            mode=self.config.account_mode.value,
        )
        return self._run.test_id

    async def status(self) -> TestStatus:
        """Fetch the current status of the run from the server.

        Returns ``UNSCHEDULED`` without a request when nothing was submitted.
        """
        self._ensure_configured()
        if not self._run.is_submitted:
            return TestStatus.UNSCHEDULED

        response = await self._call(Operation.STATUS, self._run_params())
        status = TestStatus.parse(response.get("status"))
        self._run = self._run.observe(response, status=status)
        await logger.adebug("test_status", test_id=self._run.test_id, status=status.value)
        return status

    async def is_done(self) -> bool:
        """True once the server reports a terminal status.

        A test that was never submitted is not done.
        """
        self._ensure_configured()
        if not self._run.is_submitted:
            return False
        return (await self.status()).is_terminal

    async def wait(
        self,
        *,
        poll_interval: Optional[float] = None,
        max_wait: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> TestStatus:
        """Poll the current run until it reaches a terminal status.

        ``poll_interval`` and ``max_wait`` default to the config values.
        """
        self._ensure_configured()
        if not self._run.is_submitted:
            return TestStatus.UNSCHEDULED

        status, _ = await wait_until_done(
            self._run.test_id,
            self.status,
            poll_interval=self.config.poll_interval if poll_interval is None else poll_interval,
            max_wait=self.config.max_wait if max_wait is None else max_wait,
            cancel=cancel,
        )
        return status

    async def run_and_wait(
        self,
        *,
        poll_interval: Optional[float] = None,
        max_wait: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[str]:
        """Submit a run and block until it finishes.

        Returns the new test id, or ``None`` if the submission got no id
        (in which case nothing is polled).
        """
        test_id = await self.submit()
        if test_id is None:
            return None
        await self.wait(poll_interval=poll_interval, max_wait=max_wait, cancel=cancel)
        return test_id

    async def run(self, wait: bool = True, **wait_kwargs: Any) -> Optional[str]:
        """Run the test; with ``wait=False`` return as soon as it is queued."""
        if wait:
            return await self.run_and_wait(**wait_kwargs)
        return await self.submit()

    # ── stats ────────────────────────────────────────────────────────

    async def _stat(self, operation: Operation, field: str) -> int:
        self._ensure_configured()
        if not self._run.is_submitted:
            return 0

        response = await self._call(operation, self._run_params())
        self._run = self._run.observe(response)
        value = response.get(field)
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int):
            raise ServerError(
                response.status_code,
                f"Non-integer {field} count: {value!r}",
                response_body=str(response.body),
            )
        return value

    async def passed(self) -> int:
        """Number of "then" checks that passed so far."""
        return await self._stat(Operation.PASSED, "passed")

    async def failed(self) -> int:
        """Number of "then" checks that failed so far."""
        return await self._stat(Operation.FAILED, "failed")

    async def planned(self) -> int:
        """Total number of "then" checks in the script."""
        return await self._stat(Operation.PLANNED, "planned")

    async def stats(self) -> RunStats:
        return RunStats(
            passed=await self.passed(),
            failed=await self.failed(),
            planned=await self.planned(),
        )

    # ── results ──────────────────────────────────────────────────────

    async def results(self) -> list[ResultLine]:
        """Fetch the TAP result lines of the run, in server order."""
        self._ensure_configured()
        if not self._run.is_submitted:
            return []

        params = self._run_params()
        if self.config.results_format:
            params["type"] = self.config.results_format
        response = await self._call(Operation.RESULTS, params)
        self._run = self._run.observe(response)
        return decode_results(response.get("results"))

    async def results_string(self) -> str:
        """The result set as a newline-joined TAP report."""
        return join_results(await self.results())

    # ── screenshots ──────────────────────────────────────────────────

    async def list_screenshots(self) -> list[str]:
        self._ensure_configured()
        if not self._run.is_submitted:
            return []

        response = await self._call(Operation.SCREENSHOTS, self._run_params())
        self._run = self._run.observe(response)
        names = response.get("screenshots")
        if names is None:
            return []
        if not isinstance(names, list):
            raise ServerError(
                response.status_code,
                f"Screenshot list is not a list: {names!r}",
                response_body=str(response.body),
            )
        return [str(name) for name in names if name is not None]

    async def fetch_screenshot(self, name: str) -> Optional[str]:
        """Fetch one screenshot of the run as base64 text."""
        self._ensure_configured()
        if not self._run.is_submitted:
            return None

        params = {"filename": name, **self._run_params()}
        response = await self._call(Operation.SCREENSHOT, params)
        self._run = self._run.observe(response)
        image = response.get("screenshot")
        if image is not None and not isinstance(image, str):
            raise ServerError(
                response.status_code,
                f"Screenshot {name} is not base64 text",
                response_body=str(response.body),
            )
        return image

    async def fetch_all_screenshots(self) -> dict[str, Optional[str]]:
        """Fetch every screenshot of the run, keyed by file name.

        All fetches finish before the first failure, if any, is raised.
        """
        names = await self.list_screenshots()
        if not names:
            return {}
        images = await asyncio.gather(
            *(self.fetch_screenshot(name) for name in names),
            return_exceptions=True,
        )
        for image in images:
            if isinstance(image, BaseException):
                raise image
        return dict(zip(names, images))

    # ── validation / health ──────────────────────────────────────────

    async def phrase_check(self, script: Optional[str] = None) -> Optional[str]:
        """Ask the server whether the PBehave phrases of a script are valid."""
        self._ensure_configured()
        text = self.config.script if script is None else script
        response = await self._call(Operation.PHRASE_CHECK, {"pbehave": text})
        self._run = self._run.observe(response)
        return response.message

    async def ping(self) -> Optional[str]:
        """Round-trip to confirm connectivity and credentials."""
        self._ensure_configured()
        response = await self._call(Operation.PING, {})
        self._run = self._run.observe(response)
        return response.message
