# adaptive_perf/models/enums.py

from enum import Enum

class DeviceType(Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"

class OperatingSystem(Enum):
    IOS = "ios"
    ANDROID = "android"
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"

class ConnectionType(Enum):
    WIFI = "wifi"
    CELLULAR_4G = "4g"
    CELLULAR_3G = "3g"
    CELLULAR_2G = "2g"
    SLOW_2G = "slow-2g"
    OFFLINE = "offline"

class ConnectionSpeed(Enum):
    FAST = "fast"
    MODERATE = "moderate"
    SLOW = "slow"

class CompressionLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    MAX = "max"

class TextAlignment(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"

class NotificationFrequency(Enum):
    IMMEDIATE = "immediate"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    DISABLED = "disabled"

class ContentPriority(Enum):
    TEXT_FIRST = "text_first"
    IMAGES_FIRST = "images_first"
    BALANCED = "balanced"

class FallbackMode(Enum):
    BASIC = "basic"
    ENHANCED = "enhanced"
    FULL = "full"

class PreferredCamera(Enum):
    FRONT = "front"
    BACK = "back"
    AUTO = "auto"

class LocationAccuracy(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class OptimizationStatus(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"

class Trend(Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DEGRADING = "degrading"

class RecommendationPriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class OptimizationTrigger(Enum):
    """What caused an optimization history entry to be written."""
    INITIAL = "initial"
    MANUAL = "manual"
    USER_REQUESTED = "user_requested"
    DEVICE_UPDATE = "device_update"
    PERFORMANCE = "performance"
    SCHEDULED = "scheduled"
    AGGRESSIVE = "aggressive"

class SettingCategory(Enum):
    """Known setting groups a history entry or optimization patch may touch."""
    IMAGE = "image"
    CONTENT = "content"
    LOADING = "loading"
    BATTERY = "battery"
    TOUCH = "touch"
    NAVIGATION = "navigation"
    DISPLAY = "display"
    NOTIFICATION = "notification"
    QUIET_HOURS = "quiet_hours"
    CAMERA = "camera"
    LOCATION = "location"
    OFFLINE = "offline"
    APP = "app"
    AUTO_OPTIMIZATION = "auto_optimization"
    BANDWIDTH = "bandwidth"
    PROGRESSIVE_ENHANCEMENT = "progressive_enhancement"

class EngineState(Enum):
    STOPPED = 0
    STARTING = 1
    RUNNING = 2
    STOPPING = 3
    ERROR = 4
