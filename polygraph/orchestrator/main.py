import asyncio
import logging
import sys

from polygraph.config import LOG_FORMAT, LOG_LEVEL, PolygraphSettings
from polygraph.orchestrator.session import PolygraphSession
from polygraph.shared.adapter import describe_setup
from polygraph.shared.media import MISSING, SimulatedMediaDevices
from polygraph.shared.probe import DeviceCapabilityProvider, PlatformInfo
from polygraph.shared.scheduler import AsyncioScheduler
from polygraph.shared.schemas import InputMethod, SessionState

logger = logging.getLogger("polygraph-brain")


async def run_until_result(session: PolygraphSession, timeout=None):
    """Wait (real time) until the session publishes its result."""
    done = asyncio.Event()
    session.add_listener(lambda view: done.set() if view.state is SessionState.RESULT else None)
    if session.state is not SessionState.RESULT:
        await asyncio.wait_for(done.wait(), timeout)
    return session.result


async def run_polygraph(statement=None, media=None, platform=None, settings=None,
                        use_facial_recognition=False, rng=None):
    """
    One full test on the real clock: probe, start, wait, return the result.
    No statement means voice input.
    """
    media = media or SimulatedMediaDevices(microphone=MISSING)
    capabilities = await DeviceCapabilityProvider(media, platform or PlatformInfo()).get_capabilities()
    logger.info(f"🩺 {describe_setup(capabilities)}")

    session = PolygraphSession(capabilities, media, AsyncioScheduler(), settings=settings, rng=rng)
    if statement:
        session.select_input_method(InputMethod.TEXT)
        session.set_statement(statement)
    if use_facial_recognition:
        session.toggle_facial_recognition()

    if await session.start_test() is SessionState.IDLE:
        return None
    return await run_until_result(session)


def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    statement = " ".join(sys.argv[1:]) or None

    logger.info("🧠 Polygraph starting...")
    result = asyncio.run(run_polygraph(statement, settings=PolygraphSettings()))
    if result is None:
        print("❌ Nothing to analyze.")
        return 1

    print(f"\n{result.truth_probability}%  {result.analysis.value}")
    print(f"Confidence Level: {result.confidence}%")
    print(f"Analyzed Statement: \"{result.statement}\"")
    return 0


if __name__ == "__main__":
    sys.exit(main())
