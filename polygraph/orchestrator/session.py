"""
Session state machine.

    IDLE -> RECORDING (voice + mic) -> ANALYZING -> RESULT -> IDLE (reset)
    IDLE -> ANALYZING (text, or voice without a mic)

The session owns every piece of mutable state: the live sensor readings,
the waveform buffer, capture handles and all timers. Each state gets its own
TimerGroup; entering a state cancels the previous group before anything new
is scheduled, so a stale timer can never write into the next state's data.
"""

import logging
import random

from polygraph.audio_worker.audio_processor import VoiceActivityEstimator
from polygraph.body_worker.sensors import PulseSensor, PulseWaveformSensor, TouchPressureSensor
from polygraph.config import PolygraphSettings
from polygraph.face_worker.sensors import FacialStressSensor
from polygraph.orchestrator.deception_model import DeceptionModel
from polygraph.shared.adapter import (
    RECORDING_PROGRESS,
    RECORDING_STATUS_ADAPTER,
    STATEMENT_ADAPTER,
    STATUS_MESSAGE_ADAPTER,
    active_sensor_count,
    describe_setup,
)
from polygraph.shared.errors import DeviceUnavailable, PermissionDenied
from polygraph.shared.scheduler import TimerGroup
from polygraph.shared.schemas import (
    VOICE_DENIED,
    VOICE_SIMULATED,
    Capabilities,
    InputMethod,
    SensorReadings,
    SessionState,
    SessionView,
)

logger = logging.getLogger("polygraph-session")

PROGRESS_STEP = (8, 20)


class PolygraphSession:

    def __init__(self, capabilities: Capabilities, media, scheduler,
                 settings: PolygraphSettings = None, model: DeceptionModel = None,
                 rng: random.Random = None):
        self.capabilities = capabilities
        self.media = media
        self.scheduler = scheduler
        self.settings = settings or PolygraphSettings()
        self.rng = rng or random.Random()
        self.model = model or DeceptionModel(self.rng)

        # Sensors
        self.readings = SensorReadings()
        self.pulse = PulseSensor(self.rng, self.settings.pulse_interval)
        self.waveform = PulseWaveformSensor(
            self.rng, self.settings.waveform_interval, self.settings.waveform_window)
        self.touch = TouchPressureSensor(self.rng)
        self.face = FacialStressSensor(self.rng, self.settings.facial_interval)
        self.voice = VoiceActivityEstimator()

        # UI-facing state
        self.input_method = InputMethod.VOICE
        self.statement_text = ""
        self.use_facial_recognition = False
        self.recording_status = ""
        self.progress = 0.0
        self.result = None

        # Internals
        self._state = SessionState.IDLE
        self._generation = 0
        self._timers = TimerGroup(scheduler, "init")
        self._touch_timers = TimerGroup(scheduler, "touch")
        self._microphone = None
        self._silence_timer = None
        self._progress_timer = None
        self._facial_timer = None
        self._tasks = set()
        self._listeners = []

        self._enter(SessionState.IDLE)

    # --- Read-only views ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def voice_detected(self) -> bool:
        return self.voice.detected

    @property
    def voice_input_complete(self) -> bool:
        return self.voice.complete

    @property
    def facial_analysis_active(self) -> bool:
        return self.face.active

    def add_listener(self, callback):
        """callback(SessionView) on every state transition."""
        self._listeners.append(callback)

    def view(self) -> SessionView:
        if self._state is SessionState.RECORDING:
            progress = RECORDING_PROGRESS[self.voice.detected]
        else:
            progress = self.progress
        active, total = active_sensor_count(self.capabilities, self.face.active)

        return SessionView(
            state=self._state,
            input_method=self.input_method,
            sensors=self.readings.freeze(),
            waveform=self.waveform.points,
            recording_status=self.recording_status,
            progress=progress,
            status_message=self._status_message(),
            voice_detected=self.voice.detected,
            voice_input_complete=self.voice.complete,
            use_facial_recognition=self.use_facial_recognition,
            facial_analysis_active=self.face.active,
            sensors_active=active,
            sensors_total=total,
            result=self.result,
        )

    def _status_message(self):
        if self._state is SessionState.RECORDING:
            key = "recording_voice" if self.voice.detected else "recording_waiting"
            return STATUS_MESSAGE_ADAPTER[key]
        if self._state is SessionState.ANALYZING:
            key = "analyzing_facial" if self.face.active else "analyzing"
            return STATUS_MESSAGE_ADAPTER[key]
        if self._state is SessionState.IDLE:
            return describe_setup(self.capabilities)
        return ""

    # --- UI inputs (IDLE only) ---

    def select_input_method(self, method):
        if not self._require(SessionState.IDLE, "select_input_method"):
            return
        self.input_method = InputMethod(method)

    def set_statement(self, text: str):
        if not self._require(SessionState.IDLE, "set_statement"):
            return
        self.statement_text = text or ""

    def toggle_facial_recognition(self) -> bool:
        if not self._require(SessionState.IDLE, "toggle_facial_recognition"):
            return self.use_facial_recognition
        if not self.capabilities.has_camera:
            logger.warning("⚠️ Facial recognition needs a camera, ignoring toggle")
            return False
        self.use_facial_recognition = not self.use_facial_recognition
        return self.use_facial_recognition

    async def start_test(self) -> SessionState:
        if not self._require(SessionState.IDLE, "start_test"):
            return self._state

        if self.input_method is InputMethod.VOICE:
            if self.capabilities.has_microphone:
                await self._start_recording()
            else:
                self.readings.voice_level = VOICE_SIMULATED
                await self._begin_analysis(STATEMENT_ADAPTER["simulated"])
        elif self.statement_text.strip():
            await self._begin_analysis(self.statement_text)
        else:
            logger.info("Empty statement, staying idle")

        return self._state

    def stop_recording(self):
        """Manual stop. Analyzes whatever was (or wasn't) heard."""
        if self._state is not SessionState.RECORDING or self._microphone is None:
            logger.warning(f"⚠️ stop_recording ignored in state {self._state.value}")
            return
        self._finish_recording()

    def reset(self):
        """Back to IDLE from anywhere. Cancels every timer and releases every device."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        self._touch_timers.cancel_all()
        self._touch_timers = TimerGroup(self.scheduler, "touch")
        self._timers.cancel_all()
        self._release_microphone()
        self._stop_facial_analysis()

        self.result = None
        self.statement_text = ""
        self.recording_status = ""
        self.progress = 0.0
        self.waveform.clear()
        self.readings.reset()
        self.voice.start()

        logger.info("♻️ Session reset")
        self._enter(SessionState.IDLE)

    # --- Touch events (any state) ---

    def touch_start(self, force=None):
        if not self.capabilities.touch_capable:
            return
        # a new press pre-empts the pending release reset
        self._touch_timers.cancel_all()
        self._touch_timers = TimerGroup(self.scheduler, "touch")
        self.readings.touch_pressure = self.touch.press(force)

    def touch_end(self):
        if not self.capabilities.touch_capable:
            return
        self.readings.touch_pressure = self.touch.release(self.readings.touch_pressure)
        self._touch_timers.call_later(
            self.settings.touch_release_delay, self._clear_touch, label="touch-release")

    def _clear_touch(self):
        self.readings.touch_pressure = 0.0

    # --- Transitions ---

    def _require(self, state, operation):
        if self._state is state:
            return True
        logger.warning(f"⚠️ {operation} ignored in state {self._state.value}")
        return False

    def _enter(self, state: SessionState):
        previous = self._state

        # 1. Tear down everything the previous state owned
        self._timers.cancel_all()
        self._silence_timer = None
        self._progress_timer = None
        if state is not SessionState.RECORDING:
            self._release_microphone()
        if state is not SessionState.ANALYZING:
            self._stop_facial_analysis()

        self._generation += 1
        self._state = state
        self._timers = TimerGroup(self.scheduler, state.value)

        # 2. Simulators the new state runs
        active = state in (SessionState.RECORDING, SessionState.ANALYZING)
        touch = self.capabilities.touch_capable

        self.pulse.analyzing = state is SessionState.ANALYZING
        if active or touch:
            self._timers.call_every(self.pulse.interval, self._tick_pulse, label="pulse")

        if state is SessionState.ANALYZING or (state is SessionState.RECORDING and touch):
            self._timers.call_every(self.waveform.interval, self._tick_waveform, label="waveform")
        else:
            self.waveform.clear()

        if previous is not state:
            logger.info(f"🔀 {previous.value} -> {state.value}")
        self._notify()

    def _notify(self):
        if not self._listeners:
            return
        view = self.view()
        for callback in self._listeners:
            try:
                callback(view)
            except Exception:
                logger.exception("Session listener failed")

    def _spawn_analysis(self, statement):
        task = self.scheduler.spawn(self._begin_analysis(statement, self._generation))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("❌ Analysis task failed", exc_info=task.exception())

    # --- Simulator ticks ---

    def _tick_pulse(self):
        self.readings.pulse_rate = self.pulse.sample(self.scheduler.time())

    def _tick_waveform(self):
        self.waveform.voice_detected = self.voice.detected
        self.waveform.sample(self.scheduler.time())

    def _tick_facial(self):
        self.readings.facial_stress = self.face.sample(self.scheduler.time())

    # --- RECORDING ---

    async def _start_recording(self):
        self._enter(SessionState.RECORDING)
        generation = self._generation
        self.voice.start()
        self.readings.voice_level = 0
        self.recording_status = RECORDING_STATUS_ADAPTER["requesting"]

        try:
            stream = await self.media.open_microphone()
        except PermissionDenied as e:
            if generation != self._generation:
                return
            logger.warning(f"⚠️ Microphone permission denied: {e}")
            self.recording_status = RECORDING_STATUS_ADAPTER["denied"]
            self.readings.voice_level = VOICE_DENIED
            self._timers.call_later(
                self.settings.mic_denied_delay, self._spawn_analysis,
                STATEMENT_ADAPTER["mic_unavailable"], label="mic-denied")
            return
        except DeviceUnavailable as e:
            if generation != self._generation:
                return
            logger.warning(f"⚠️ Microphone not found, simulating voice: {e}")
            self.recording_status = RECORDING_STATUS_ADAPTER["stopped"]
            self.readings.voice_level = VOICE_SIMULATED
            await self._begin_analysis(STATEMENT_ADAPTER["simulated"])
            return

        if generation != self._generation:
            # session moved on while the permission prompt was up
            stream.stop()
            return

        self._microphone = stream
        self.recording_status = RECORDING_STATUS_ADAPTER["listening"]
        self._timers.call_every(self.settings.frame_interval, self._sample_voice, label="voice-frame")
        self._timers.call_later(
            self.settings.recording_timeout, self._on_recording_timeout, label="recording-timeout")
        logger.info("🎤 Recording started")

    def _sample_voice(self):
        if self._microphone is None or not self._microphone.live:
            return
        voiced = self.voice.process_frame(self._microphone.read_frequency_data())
        self.readings.voice_level = self.voice.level

        if voiced:
            if self._silence_timer is not None:
                self._silence_timer.cancel()
            self._silence_timer = self._timers.call_later(
                self.settings.silence_timeout, self._on_silence, label="silence")

    def _on_silence(self):
        logger.info("🤫 Trailing silence, voice input complete")
        self.voice.mark_complete()
        self._finish_recording()

    def _on_recording_timeout(self):
        if self.voice.detected:
            return
        logger.warning("⏳ No voice within the recording window")
        self._stop_capture()
        self._spawn_analysis(STATEMENT_ADAPTER["no_input"])

    def _finish_recording(self):
        key = "audio_input" if self.voice.detected else "low_audio"
        self._stop_capture()
        self._spawn_analysis(STATEMENT_ADAPTER[key])

    def _stop_capture(self):
        # Frame loop and timers stop now, not when ANALYZING is entered
        self._timers.cancel_all()
        self._silence_timer = None
        self._release_microphone()
        self.recording_status = RECORDING_STATUS_ADAPTER["stopped"]

    def _release_microphone(self):
        if self._microphone is not None:
            self._microphone.stop()
            self._microphone = None
            logger.info("🎤 Microphone released")

    # --- ANALYZING ---

    async def _begin_analysis(self, statement, generation=None):
        if generation is not None and generation != self._generation:
            return

        self._enter(SessionState.ANALYZING)
        generation = self._generation
        self.progress = 0.0

        if self.use_facial_recognition and self.capabilities.has_camera:
            started = await self.face.start(self.media)
            if generation != self._generation:
                self.face.stop()
                return
            if started:
                self._facial_timer = self._timers.call_every(
                    self.face.interval, self._tick_facial, label="facial")

        self._progress_timer = self._timers.call_every(
            self.settings.progress_interval, self._advance_progress, label="progress")
        self._timers.call_later(
            self.settings.analysis_delay, self._complete_analysis, statement, label="analysis")
        logger.info(f"🔬 Analyzing statement: \"{statement}\"")

    def _advance_progress(self):
        self.progress = min(100.0, self.progress + self.rng.uniform(*PROGRESS_STEP))
        if self.progress >= 100 and self._progress_timer is not None:
            self._progress_timer.cancel()

    def _complete_analysis(self, statement):
        snapshot = self.readings.freeze()
        result = self.model.analyze(
            statement, snapshot, self.capabilities,
            voice_detected=self.voice.detected,
            facial_active=self.face.active,
        )

        if self._progress_timer is not None:
            self._progress_timer.cancel()
        self.progress = 100.0
        self._stop_facial_analysis()

        # let the progress bar visibly finish before the result appears
        self._timers.call_later(self.settings.publish_delay, self._publish, result, label="publish")

    def _stop_facial_analysis(self):
        if self._facial_timer is not None:
            self._facial_timer.cancel()
            self._facial_timer = None
        self.face.stop()
        self.readings.facial_stress = 0.0

    def _publish(self, result):
        self.result = result
        self.readings.reset()
        self.voice.start()
        logger.info(
            f"✅ Result | {result.analysis.value} | truth: {result.truth_probability}% "
            f"| confidence: {result.confidence}%")
        self._enter(SessionState.RESULT)
