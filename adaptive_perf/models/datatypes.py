# adaptive_perf/models/datatypes.py

from dataclasses import dataclass, field, fields
from typing import Dict, Any, Optional, List, Tuple, Type
import re
import time
import uuid

from .enums import (
    DeviceType, OperatingSystem, ConnectionType, ConnectionSpeed, CompressionLevel,
    TextAlignment, NotificationFrequency, ContentPriority, FallbackMode, PreferredCamera,
    LocationAccuracy, OptimizationTrigger, RecommendationPriority, SettingCategory,
)

MULTIPLIER_BOUNDS = (0.8, 2.0)
_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


# --- Device ---

@dataclass
class ScreenResolution:
    width: int = 375
    height: int = 667


@dataclass
class DeviceInfo:
    """Device/network characteristics reported by the client."""
    device_type: DeviceType = DeviceType.MOBILE
    operating_system: OperatingSystem = OperatingSystem.ANDROID
    browser: str = "chrome"
    browser_version: str = "91.0"
    screen_resolution: ScreenResolution = field(default_factory=ScreenResolution)
    device_pixel_ratio: float = 2.0
    is_low_power_mode: bool = False
    connection_type: ConnectionType = ConnectionType.WIFI
    connection_speed: ConnectionSpeed = ConnectionSpeed.FAST


# --- Performance settings ---

@dataclass
class ImageOptimization:
    enable_webp: bool = True
    enable_lazy_loading: bool = True
    compression_level: CompressionLevel = CompressionLevel.MEDIUM
    max_image_width: int = 800
    max_image_height: int = 600
    enable_adaptive_images: bool = True


@dataclass
class ContentOptimization:
    enable_minification: bool = True
    enable_gzip_compression: bool = True
    enable_brotli_compression: bool = True
    enable_content_caching: bool = True
    cache_timeout: int = 3600 # seconds
    enable_offline_mode: bool = True


@dataclass
class LoadingOptimization:
    enable_progressive_loading: bool = True
    enable_preloading: bool = True
    enable_prefetching: bool = True
    enable_code_splitting: bool = True
    enable_service_worker: bool = True
    max_concurrent_requests: int = 6


@dataclass
class BatteryOptimization:
    enable_battery_saver: bool = True
    reduced_animations: bool = False
    reduced_background_activity: bool = False
    optimized_polling: bool = True
    battery_threshold: int = 20 # percent


@dataclass
class PerformanceSettings:
    image_optimization: ImageOptimization = field(default_factory=ImageOptimization)
    content_optimization: ContentOptimization = field(default_factory=ContentOptimization)
    loading_optimization: LoadingOptimization = field(default_factory=LoadingOptimization)
    battery_optimization: BatteryOptimization = field(default_factory=BatteryOptimization)


# --- UX settings ---

@dataclass
class TouchOptimization:
    enable_touch_gestures: bool = True
    swipe_navigation: bool = True
    pinch_to_zoom: bool = True
    tap_to_click: bool = True
    touch_target_size: int = 44 # pixels
    gesture_threshold: int = 10 # pixels


@dataclass
class NavigationOptimization:
    enable_bottom_navigation: bool = True
    enable_side_drawer: bool = True
    enable_breadcrumbs: bool = False
    enable_search_shortcuts: bool = True
    show_back_button: bool = True


@dataclass
class DisplayOptimization:
    font_size_multiplier: float = 1.0
    line_height_multiplier: float = 1.0
    enable_dark_mode: bool = False
    enable_high_contrast: bool = False
    enable_dyslexic_font: bool = False
    text_alignment: TextAlignment = TextAlignment.LEFT

    def __post_init__(self):
        low, high = MULTIPLIER_BOUNDS
        for name in ("font_size_multiplier", "line_height_multiplier"):
            value = getattr(self, name)
            if not (low <= value <= high):
                raise ValueError(f"{name} must be within [{low}, {high}], got {value}")


@dataclass
class QuietHours:
    enabled: bool = False
    start_time: str = "22:00"
    end_time: str = "08:00"


@dataclass
class NotificationSettings:
    enable_push_notifications: bool = True
    enable_in_app_notifications: bool = True
    notification_frequency: NotificationFrequency = NotificationFrequency.IMMEDIATE
    quiet_hours: QuietHours = field(default_factory=QuietHours)


@dataclass
class UXSettings:
    touch_optimization: TouchOptimization = field(default_factory=TouchOptimization)
    navigation_optimization: NavigationOptimization = field(default_factory=NavigationOptimization)
    display_optimization: DisplayOptimization = field(default_factory=DisplayOptimization)
    notification_settings: NotificationSettings = field(default_factory=NotificationSettings)


# --- Metrics (None means "not reported", distinct from zero) ---

@dataclass
class PageLoadMetrics:
    first_contentful_paint: Optional[float] = None # ms
    largest_contentful_paint: Optional[float] = None
    first_input_delay: Optional[float] = None
    cumulative_layout_shift: Optional[float] = None
    time_to_interactive: Optional[float] = None
    total_page_size: Optional[float] = None # bytes
    number_of_requests: Optional[float] = None


@dataclass
class InteractionMetrics:
    average_session_duration: Optional[float] = None # seconds
    bounce_rate: Optional[float] = None # percent
    pages_per_session: Optional[float] = None
    scroll_depth: Optional[float] = None
    click_through_rate: Optional[float] = None
    conversion_rate: Optional[float] = None


@dataclass
class NetworkMetrics:
    average_response_time: Optional[float] = None # ms
    error_rate: Optional[float] = None # percent
    timeout_rate: Optional[float] = None
    retry_rate: Optional[float] = None
    cache_hit_rate: Optional[float] = None


@dataclass
class ResourceMetrics:
    battery_usage: Optional[float] = None # percent per hour
    memory_usage: Optional[float] = None # MB
    cpu_usage: Optional[float] = None # percent
    network_usage: Optional[float] = None # MB
    storage_usage: Optional[float] = None # MB


@dataclass
class PerformanceMetrics:
    page_load: Optional[PageLoadMetrics] = None
    interaction: Optional[InteractionMetrics] = None
    network: Optional[NetworkMetrics] = None
    resources: Optional[ResourceMetrics] = None


# --- Adaptive behaviour ---

@dataclass
class AutoOptimization:
    enabled: bool = True
    adjust_for_slow_connection: bool = True
    adjust_for_low_battery: bool = True
    adjust_for_low_memory: bool = True
    adjust_for_offline_mode: bool = True


@dataclass
class BandwidthManagement:
    enable_data_saver: bool = False
    max_bandwidth_usage: Optional[float] = None # MB per session
    prioritize_content: ContentPriority = ContentPriority.BALANCED
    enable_background_sync: bool = True


@dataclass
class ProgressiveEnhancement:
    fallback_mode: FallbackMode = FallbackMode.ENHANCED
    enable_feature_detection: bool = True
    graceful_degradation: bool = True


@dataclass
class AdaptiveBehavior:
    auto_optimization: AutoOptimization = field(default_factory=AutoOptimization)
    bandwidth_management: BandwidthManagement = field(default_factory=BandwidthManagement)
    progressive_enhancement: ProgressiveEnhancement = field(default_factory=ProgressiveEnhancement)


# --- Mobile features ---

@dataclass
class CameraIntegration:
    enable_camera: bool = True
    preferred_camera: PreferredCamera = PreferredCamera.BACK
    enable_photo_upload: bool = True
    enable_video_upload: bool = True
    max_photo_size: int = 5 # MB
    max_video_size: int = 50 # MB


@dataclass
class LocationServices:
    enable_gps: bool = True
    enable_location_sharing: bool = False
    location_accuracy: LocationAccuracy = LocationAccuracy.MEDIUM
    enable_geotagging: bool = True
    enable_nearby_places: bool = True


@dataclass
class OfflineCapabilities:
    enable_offline_reading: bool = True
    enable_offline_comments: bool = True
    enable_offline_bookmarks: bool = True
    offline_storage_limit: int = 100 # MB
    sync_when_online: bool = True


@dataclass
class AppFeatures:
    enable_pwa: bool = True
    enable_home_screen_install: bool = True
    enable_fullscreen: bool = False
    enable_splash_screen: bool = True
    enable_app_badges: bool = True


@dataclass
class MobileFeatures:
    camera_integration: CameraIntegration = field(default_factory=CameraIntegration)
    location_services: LocationServices = field(default_factory=LocationServices)
    offline_capabilities: OfflineCapabilities = field(default_factory=OfflineCapabilities)
    app_features: AppFeatures = field(default_factory=AppFeatures)


# --- Setting categories (tagged union for patches and history) ---

# category -> attribute path from the profile root
SETTING_CATEGORY_PATHS: Dict[SettingCategory, Tuple[str, ...]] = {
    SettingCategory.IMAGE: ("performance_settings", "image_optimization"),
    SettingCategory.CONTENT: ("performance_settings", "content_optimization"),
    SettingCategory.LOADING: ("performance_settings", "loading_optimization"),
    SettingCategory.BATTERY: ("performance_settings", "battery_optimization"),
    SettingCategory.TOUCH: ("ux_settings", "touch_optimization"),
    SettingCategory.NAVIGATION: ("ux_settings", "navigation_optimization"),
    SettingCategory.DISPLAY: ("ux_settings", "display_optimization"),
    SettingCategory.NOTIFICATION: ("ux_settings", "notification_settings"),
    SettingCategory.QUIET_HOURS: ("ux_settings", "notification_settings", "quiet_hours"),
    SettingCategory.CAMERA: ("mobile_features", "camera_integration"),
    SettingCategory.LOCATION: ("mobile_features", "location_services"),
    SettingCategory.OFFLINE: ("mobile_features", "offline_capabilities"),
    SettingCategory.APP: ("mobile_features", "app_features"),
    SettingCategory.AUTO_OPTIMIZATION: ("adaptive_behavior", "auto_optimization"),
    SettingCategory.BANDWIDTH: ("adaptive_behavior", "bandwidth_management"),
    SettingCategory.PROGRESSIVE_ENHANCEMENT: ("adaptive_behavior", "progressive_enhancement"),
}

SETTING_CATEGORY_TYPES: Dict[SettingCategory, Type[Any]] = {
    SettingCategory.IMAGE: ImageOptimization,
    SettingCategory.CONTENT: ContentOptimization,
    SettingCategory.LOADING: LoadingOptimization,
    SettingCategory.BATTERY: BatteryOptimization,
    SettingCategory.TOUCH: TouchOptimization,
    SettingCategory.NAVIGATION: NavigationOptimization,
    SettingCategory.DISPLAY: DisplayOptimization,
    SettingCategory.NOTIFICATION: NotificationSettings,
    SettingCategory.QUIET_HOURS: QuietHours,
    SettingCategory.CAMERA: CameraIntegration,
    SettingCategory.LOCATION: LocationServices,
    SettingCategory.OFFLINE: OfflineCapabilities,
    SettingCategory.APP: AppFeatures,
    SettingCategory.AUTO_OPTIMIZATION: AutoOptimization,
    SettingCategory.BANDWIDTH: BandwidthManagement,
    SettingCategory.PROGRESSIVE_ENHANCEMENT: ProgressiveEnhancement,
}

CATEGORY_BY_PATH: Dict[Tuple[str, ...], SettingCategory] = {
    path: category for category, path in SETTING_CATEGORY_PATHS.items()
}

# (category, field) -> inclusive (min, max); None means unbounded on that side
SETTING_BOUNDS: Dict[Tuple[SettingCategory, str], Tuple[Optional[float], Optional[float]]] = {
    (SettingCategory.DISPLAY, "font_size_multiplier"): MULTIPLIER_BOUNDS,
    (SettingCategory.DISPLAY, "line_height_multiplier"): MULTIPLIER_BOUNDS,
    (SettingCategory.IMAGE, "max_image_width"): (1, None),
    (SettingCategory.IMAGE, "max_image_height"): (1, None),
    (SettingCategory.CONTENT, "cache_timeout"): (0, None),
    (SettingCategory.LOADING, "max_concurrent_requests"): (1, None),
    (SettingCategory.BATTERY, "battery_threshold"): (0, 100),
    (SettingCategory.TOUCH, "touch_target_size"): (1, None),
    (SettingCategory.TOUCH, "gesture_threshold"): (0, None),
    (SettingCategory.OFFLINE, "offline_storage_limit"): (0, None),
    (SettingCategory.CAMERA, "max_photo_size"): (0, None),
    (SettingCategory.CAMERA, "max_video_size"): (0, None),
    (SettingCategory.BANDWIDTH, "max_bandwidth_usage"): (0, None),
}

TIME_OF_DAY_FIELDS = {(SettingCategory.QUIET_HOURS, "start_time"), (SettingCategory.QUIET_HOURS, "end_time")}


def is_valid_time_of_day(value: str) -> bool:
    return isinstance(value, str) and bool(_HHMM.match(value))


@dataclass(frozen=True)
class SettingChange:
    """One field mutation inside a known setting category."""
    category: SettingCategory
    field: str
    value: Any
    previous: Any = None

    def __post_init__(self):
        settings_type = SETTING_CATEGORY_TYPES[self.category]
        if self.field not in {f.name for f in fields(settings_type)}:
            raise ValueError(f"'{self.field}' is not a field of {settings_type.__name__} ({self.category.value})")


# --- History, feedback, recommendations ---

@dataclass
class ImpactSnapshot:
    load_time: Optional[float] = None # first contentful paint, ms
    battery_usage: Optional[float] = None
    memory_usage: Optional[float] = None
    score: Optional[int] = None


@dataclass
class PerformanceImpact:
    before: ImpactSnapshot = field(default_factory=ImpactSnapshot)
    after: ImpactSnapshot = field(default_factory=ImpactSnapshot)


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable audit record; one per logical optimization event."""
    action: str
    reason: str
    trigger: OptimizationTrigger
    timestamp: float = field(default_factory=time.time)
    changes: List[SettingChange] = field(default_factory=list)
    actions_applied: List[str] = field(default_factory=list)
    performance_impact: PerformanceImpact = field(default_factory=PerformanceImpact)


@dataclass
class Feedback:
    performance_rating: Optional[int] = None
    usability_rating: Optional[int] = None
    battery_rating: Optional[int] = None
    last_feedback_date: Optional[float] = None
    comments: List[str] = field(default_factory=list)
    submission_count: int = 0


@dataclass
class Recommendation:
    type: str
    priority: RecommendationPriority
    title: str
    description: str
    actions: List[str] = field(default_factory=list)


# --- Profile aggregate ---

@dataclass
class OptimizationProfile:
    """Per-subject aggregate. Score and status are always derived, never stored."""
    subject_id: str
    profile_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    performance_settings: PerformanceSettings = field(default_factory=PerformanceSettings)
    ux_settings: UXSettings = field(default_factory=UXSettings)
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    adaptive_behavior: AdaptiveBehavior = field(default_factory=AdaptiveBehavior)
    mobile_features: MobileFeatures = field(default_factory=MobileFeatures)
    feedback: Feedback = field(default_factory=Feedback)
    optimization_history: List[HistoryEntry] = field(default_factory=list)
    last_optimization_check: float = field(default_factory=time.time)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    optimization_version: str = "1.0.0"

    def settings_group(self, category: SettingCategory) -> Any:
        """Return the live settings dataclass instance for ``category``."""
        target: Any = self
        for attr in SETTING_CATEGORY_PATHS[category]:
            target = getattr(target, attr)
        return target

    def mark_checked(self, when: Optional[float] = None) -> None:
        """Advance last_optimization_check; never moves it backwards."""
        when = time.time() if when is None else when
        self.last_optimization_check = max(self.last_optimization_check, when)
