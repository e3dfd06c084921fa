# Mapping session events / device facts to the user-facing text the renderer shows.
# Keep the strings stable: the statement text feeds the deception model seed.

STATEMENT_ADAPTER = {
    "simulated": "Voice statement analyzed (simulated)",           # voice mode, no microphone
    "mic_unavailable": "Voice statement analyzed (mic unavailable)",  # permission denied
    "no_input": "Voice statement analyzed (no input)",             # 10s timeout, nothing heard
    "audio_input": "Voice statement analyzed with audio input",    # heard voice, then silence
    "low_audio": "Voice statement analyzed (low audio)",           # stopped before any voice
}

RECORDING_STATUS_ADAPTER = {
    "requesting": "Requesting microphone...",
    "listening": "Listening...",
    "denied": "Mic access denied",
    "stopped": "",
}

STATUS_MESSAGE_ADAPTER = {
    "recording_voice": "Voice detected - keep speaking naturally",
    "recording_waiting": "Listening for voice input...",
    "analyzing_facial": "Processing biometric and facial data...",
    "analyzing": "Processing biometric data...",
}

# Progress bar while recording is fixed (no real progress to report)
RECORDING_PROGRESS = {True: 60, False: 20}

# enumerate_devices() kinds that count as input modalities
DEVICE_KIND_ADAPTER = {
    "audioinput": "microphone",
    "videoinput": "camera",
}

SETUP_ADAPTER = {
    "optimal": "Optimal Setup: All sensors active for maximum accuracy",
    "good": "Good Setup: Most sensors active, results will be reliable",
    "limited": "Limited Setup: Desktop mode with simulated sensors",
    "partial": "Partial Setup: {active}/3 sensors active",
}


def describe_setup(capabilities) -> str:
    """One-line device assessment shown before a test starts."""
    mic = capabilities.has_microphone
    touch = capabilities.has_touch
    mobile = capabilities.is_mobile

    if mobile and mic and touch:
        return SETUP_ADAPTER["optimal"]
    if mobile and (mic or touch):
        return SETUP_ADAPTER["good"]
    if not mobile and not mic and not touch:
        return SETUP_ADAPTER["limited"]
    # pulse is always simulated, so it always counts
    active = int(mic) + int(touch) + 1
    return SETUP_ADAPTER["partial"].format(active=active)


def active_sensor_count(capabilities, facial_active=False):
    """(active, total) for the 'Sensors: n/m Active' footer."""
    active = int(capabilities.has_microphone) + int(capabilities.has_touch) + int(facial_active) + 1
    return active, (4 if facial_active else 3)
