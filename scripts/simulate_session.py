import asyncio
import logging
import random
import sys

from polygraph.config import LOG_FORMAT, PolygraphSettings
from polygraph.orchestrator.session import PolygraphSession
from polygraph.shared.adapter import describe_setup
from polygraph.shared.media import DENIED, GRANTED, MISSING, SimulatedMediaDevices, speech_burst
from polygraph.shared.probe import DeviceCapabilityProvider, PlatformInfo
from polygraph.shared.scheduler import ManualScheduler
from polygraph.shared.schemas import InputMethod, SessionState

# Configuration
STEP = 0.5                  # virtual seconds per printed frame
MAX_SECONDS = 30
MOBILE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)"

# Usage:
#   python scripts/simulate_session.py                      -> voice, simulated speech
#   python scripts/simulate_session.py "I did not do it"    -> text statement
#   python scripts/simulate_session.py --denied             -> mic permission denied


async def simulate(statement=None, microphone=GRANTED, seed=None):
    clock = ManualScheduler()
    # 1.5s of speech starting 1s into the recording
    media = SimulatedMediaDevices(
        microphone=microphone, camera=GRANTED,
        frames=speech_burst(120, start=1.0, duration=1.5), clock=clock.time)
    platform = PlatformInfo(user_agent=MOBILE_UA, max_touch_points=5, screen_width=390)

    capabilities = await DeviceCapabilityProvider(media, platform).get_capabilities()
    print(f"🩺 {describe_setup(capabilities)}")

    session = PolygraphSession(
        capabilities, media, clock, settings=PolygraphSettings(), rng=random.Random(seed))
    session.add_listener(lambda view: print(f"🔀 State: {view.state.value.upper()}"))

    if statement:
        session.select_input_method(InputMethod.TEXT)
        session.set_statement(statement)
    session.toggle_facial_recognition()

    await session.start_test()
    session.touch_start()

    elapsed = 0.0
    while session.state is not SessionState.RESULT and elapsed < MAX_SECONDS:
        await clock.advance(STEP)
        elapsed += STEP
        if elapsed == 2.0:
            session.touch_end()

        view = session.view()
        s = view.sensors
        print(
            f"⏱️ {clock.time():5.1f}s | {view.state.value:<9} | voice {s.voice_level:>4.0f} "
            f"| touch {s.touch_pressure:>4.1f} | pulse {s.pulse_rate:>3.0f} "
            f"| face {s.facial_stress:>3.0f} | sensors {view.sensors_active}/{view.sensors_total} | progress {view.progress:>5.1f}% | {view.status_message}")

    result = session.result
    if result is None:
        print("❌ Session never reached a result.")
        return None

    print(f"\n✨ {result.truth_probability}% {result.analysis.value} ({result.tone})")
    print(f"   Confidence Level: {result.confidence}%")
    print(f"   Sensors Used: {result.device_info.sensors_used} | Voice: "
          f"{'Detected' if result.device_info.voice_detected else 'Simulated'}")
    print(f"   Analyzed Statement: \"{result.statement}\"")
    return result


def main():
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    args = sys.argv[1:]
    microphone = GRANTED
    if "--denied" in args:
        microphone = DENIED
        args.remove("--denied")
    if "--no-mic" in args:
        microphone = MISSING
        args.remove("--no-mic")

    statement = " ".join(args) or None
    print("🎭 Starting Simulation (virtual clock)\n")
    asyncio.run(simulate(statement, microphone))


if __name__ == "__main__":
    main()
