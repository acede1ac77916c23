"""Constants for the Philips Somneo integration."""

DOMAIN = "somneo"

MANUFACTURER = "Philips"
MODEL = "Somneo"

# Device resource paths (relative to the product base URL)
API_BASE = "https://{host}/di/v1/products/1"
PATH_SENSORS = "/wusrd"
PATH_STATUSES = "/wusts"
PATH_LIGHT = "/wulgt"
PATH_SUNSET = "/wudsk"
PATH_RELAX = "/wurlx"
PATH_BEDTIME = "/wungt"
PATH_ALARMS_STATE = "/wualm/aenvs"
PATH_ALARMS_SCHEDULE = "/wualm/aalms"
PATH_ALARM_SLOT = "/wualm/prfwu"
PATH_LAST_EVENT = "/dataupload/event.1/data"
PATH_FACTORY_RESET = "/fac"
PATH_RADIO = "/wufmp"
PATH_PLAYER = "/wuply"

# Transport tuning
REQUEST_TIMEOUT = 10
MIN_REQUEST_INTERVAL = 1.1
RETRY_ATTEMPTS = 4
RETRY_WAIT_MIN = 0.5
RETRY_WAIT_MAX = 8.0
LOG_BODY_LIMIT = 256

# Device alarm slots
MAX_ALARM_SLOTS = 16
POWER_WAKE_MARKER = "⚡"

# Options
CONF_SENSORS_POLLING = "sensors_polling_frequency"
CONF_FUNCTIONS_POLLING = "functions_polling_frequency"
CONF_ALARMS_POLLING = "alarms_polling_frequency"
CONF_ALARMS_SYNC = "alarms_device_sync"
CONF_ALARMS_PREFIX = "alarms_generative_name"
CONF_SUNSET_DURATION = "sunset_duration"
CONF_SUNSET_INTENSITY = "sunset_light_intensity"
CONF_SUNSET_COLOR = "sunset_color_scheme"
CONF_SUNSET_SOUND = "sunset_ambient_sound"
CONF_SUNSET_RADIO = "sunset_ambient_radio_channel"
CONF_SUNSET_VOLUME = "sunset_ambient_volume"
CONF_RELAX_DURATION = "relax_duration"
CONF_RELAX_PACE = "relax_breathing_pace"
CONF_RELAX_GUIDANCE = "relax_guidance_type"
CONF_RELAX_INTENSITY = "relax_light_intensity"
CONF_RELAX_VOLUME = "relax_sound_intensity"
CONF_DISPLAY_ALWAYS_ON = "display_always_on"
CONF_DISPLAY_BRIGHTNESS = "display_brightness"
CONF_SUNRISE_COLOR = "sunrise_color_scheme"

DEFAULT_SENSORS_POLLING = 60
DEFAULT_FUNCTIONS_POLLING = 10
DEFAULT_ALARMS_POLLING = 5
DEFAULT_ALARMS_PREFIX = "Somneo"

GUIDANCE_LIGHT = "light"
GUIDANCE_SOUND = "sound"

# Sound device identifiers used by sunset, alarms and the player
SOUND_OFF = "off"
SOUND_DUSK = "dus"
SOUND_WAKEUP = "wus"
SOUND_RADIO = "fmr"
SOUND_AUX = "aux"

# Polling jobs
JOB_SENSORS = "sensors"
JOB_FUNCTIONS = "functions"
JOB_ALARMS = "alarms"

# Device functions mirrored as switches / lights
FUNC_MAIN_LIGHT = "main_light"
FUNC_NIGHT_LIGHT = "night_light"
FUNC_SUNSET = "sunset"
FUNC_RELAX = "relax_breathe"
FUNC_BEDTIME = "bedtime_tracking"
FUNC_SUNRISE_PREVIEW = "sunrise_preview"

# Last-event feed names -> (function, value)
DEVICE_EVENTS = {
    "startlight": (FUNC_MAIN_LIGHT, True),
    "stoplight": (FUNC_MAIN_LIGHT, False),
    "nightlighton": (FUNC_NIGHT_LIGHT, True),
    "nightlightoff": (FUNC_NIGHT_LIGHT, False),
    "startdusk": (FUNC_SUNSET, True),
    "enddusk": (FUNC_SUNSET, False),
    "startrelax": (FUNC_RELAX, True),
    "endrelax": (FUNC_RELAX, False),
    "go2bed": (FUNC_BEDTIME, True),
    "endbed": (FUNC_BEDTIME, False),
}

# Sunrise colour schemes: name -> (ctype, curve override)
COLOR_SCHEMES = {
    "Sunny Day": (0, None),
    "Island Red": (1, None),
    "Nordic White": (2, None),
    "Caribbean Red": (3, None),
    "No Light": (0, 0),
}

WAKEUP_SOUNDS = {
    "1": "Forest Birds",
    "2": "Summer Birds",
    "3": "Buddha Wakeup",
    "4": "Morning Alps",
    "5": "Yoga Harmony",
    "6": "Nepal Bowls",
    "7": "Summer Lake",
    "8": "Ocean Waves",
}

DUSK_SOUNDS = {
    "1": "Soft Rain",
    "2": "Ocean Waves",
    "3": "Under Water",
    "4": "Summer Lake",
}

# Services
SERVICE_FORCE_SYNC = "force_sync"
SERVICE_CREATE_ALARM = "create_alarm"
SERVICE_CREATE_NOW_ALARM = "create_now_alarm"
SERVICE_ADD_PLATFORM_ALARM = "add_platform_alarm"
SERVICE_REMOVE_PLATFORM_ALARM = "remove_platform_alarm"
SERVICE_SET_ALWAYS_ON_DISPLAY = "set_always_on_display"

STORAGE_SCHEMA_VERSION = 1
