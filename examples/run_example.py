"""Example usage of the Testafy client.

This file demonstrates:
1. Running a test and waiting for it to finish
2. Submitting a test, doing other work, then polling it
3. Fetching screenshots of a run

Set TESTAFY_BASE_URI, TESTAFY_LOGIN_NAME and TESTAFY_PASSWORD first, or
TESTAFY_LOGIN_NAME=try_it_now for the anonymous tier.
"""

import asyncio

from testafy import Test, TestConfig, TestafyError

SCRIPT = "For the url http://www.google.com\nthen pass this test"


async def example_run_and_wait(config: TestConfig) -> None:
    """Example: submit a run and block until it completes."""
    print("\n=== Run and wait ===")

    async with Test(config) as test:
        await test.run_and_wait()
        stats = await test.stats()
        print(f"passed: {stats.passed}, failed: {stats.failed}, total: {stats.planned}")
        print("\nresults:\n" + await test.results_string())


async def example_fire_and_forget(config: TestConfig) -> None:
    """Example: submit, interleave other work, poll on our own schedule."""
    print("\n=== Fire and forget ===")

    async with Test(config) as test:
        test_id = await test.submit()
        print(f"submitted {test_id}")
        while not await test.is_done():
            # Do some other stuff, if we want.
            await asyncio.sleep(config.poll_interval)
        print("\nresults:\n" + await test.results_string())


async def example_screenshots(config: TestConfig) -> None:
    """Example: ask for screenshots and list what came back."""
    print("\n=== Screenshots ===")

    async with Test(config, want_screenshots=True) as test:
        await test.run_and_wait()
        images = await test.fetch_all_screenshots()
        for name, encoded in images.items():
            print(f"{name}: {len(encoded or '')} base64 chars")


async def main() -> None:
    config = TestConfig.from_env(script=SCRIPT)
    try:
        await example_run_and_wait(config)
        await example_fire_and_forget(config)
        await example_screenshots(config)
    except TestafyError as exc:
        print(f"Testafy error: {exc}")


if __name__ == "__main__":
    asyncio.run(main())
