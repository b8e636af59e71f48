# adaptive_perf/optimization_modules/content_transformer.py

import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from ..models.datatypes import OptimizationProfile
from ..models.enums import CompressionLevel, ConnectionSpeed, DeviceType
from ..models.exceptions import ContentOptimizationError
from ..protocols import ContentOptimizer

logger_content_transformer = logging.getLogger(__name__)

DEFAULT_MOBILE_PAGE_SIZE = 10
DEFAULT_SLOW_CONNECTION_PAGE_SIZE = 5
DEFAULT_ITEMS_PER_PAGE = 20

COMPRESSION_QUALITY: Dict[CompressionLevel, int] = {
    CompressionLevel.LOW: 90,
    CompressionLevel.MEDIUM: 80,
    CompressionLevel.HIGH: 60,
    CompressionLevel.MAX: 40,
}

VIDEO_QUALITY_BY_SPEED: Dict[ConnectionSpeed, str] = {
    ConnectionSpeed.SLOW: "low",
    ConnectionSpeed.MODERATE: "medium",
    ConnectionSpeed.FAST: "high",
}

GENERIC_CONTENT_TYPE = "generic"

# (payload key, description builder) used to summarise what changed
_DESCRIPTIONS: List = [
    ("quality", lambda v: f"Image quality adjusted to {v}%" if isinstance(v, int) else f"Video quality set to {v}"),
    ("max_width", lambda v: f"Width limited to {v}px"),
    ("max_height", lambda v: f"Height limited to {v}px"),
    ("preferred_format", lambda v: f"Preferred format set to {v}"),
    ("lazy_load", lambda v: "Lazy loading enabled" if v else "Lazy loading disabled"),
    ("font_size", lambda v: f"Font size scaled to {v}"),
    ("theme", lambda v: f"Theme set to {v}"),
    ("remove_non_essential_elements", lambda v: "Non-essential elements removed" if v else None),
    ("preload_next_article", lambda v: "Next-article prefetch disabled" if v is False else None),
    ("autoplay", lambda v: "Autoplay disabled" if v is False else None),
    ("preload", lambda v: f"Preload set to {v}"),
    ("reduced_quality", lambda v: "Reduced quality for battery saver" if v else None),
    ("items_per_page", lambda v: f"Page size reduced to {v}"),
    ("enable_infinite_scroll", lambda v: "Infinite scroll enabled" if v else None),
    ("preload_images", lambda v: "Image preloading disabled" if v is False else None),
    ("minified", lambda v: "Content minification applied" if v else None),
    ("cacheable", lambda v: "Content caching enabled" if v else None),
]

Handler = Callable[[OptimizationProfile, Dict[str, Any]], Dict[str, Any]]


def describe_optimizations(original: Dict[str, Any], optimized: Dict[str, Any]) -> List[str]:
    """Human-readable list of keys the transformer added or changed."""
    if not isinstance(original, dict) or not isinstance(optimized, dict):
        return []
    descriptions: List[str] = []
    for key, describe in _DESCRIPTIONS:
        if key not in optimized:
            continue
        if key in original and original[key] == optimized[key]:
            continue
        text = describe(optimized[key])
        if text:
            descriptions.append(text)
    return descriptions


class ContentTransformer(ContentOptimizer):
    """
    Rewrites outgoing payloads according to a profile's active configuration.

    Handlers are registered per content type; unknown types use the generic
    handler. Never mutates the profile. Any handler failure returns the
    original payload unchanged.
    """

    def __init__(self):
        self._controller: Optional[Any] = None
        self.mobile_page_size: int = DEFAULT_MOBILE_PAGE_SIZE
        self.slow_connection_page_size: int = DEFAULT_SLOW_CONNECTION_PAGE_SIZE
        self._handlers: Dict[str, Handler] = {}
        self._register_defaults()
        self.transforms_performed: int = 0
        self.fallbacks_used: int = 0
        self.failures: int = 0

    def _register_defaults(self) -> None:
        for content_type in ("blog", "text", "article"):
            self.register(content_type, self._optimize_text)
        self.register("image", self._optimize_image)
        self.register("video", self._optimize_video)
        for content_type in ("list", "pagination"):
            self.register(content_type, self._optimize_list)
        self.register(GENERIC_CONTENT_TYPE, self._optimize_generic)

    async def initialize(self, config: Dict[str, Any], controller: Any) -> bool:
        self._controller = controller
        transformer_config = config.get("content_transformer", {})
        self.mobile_page_size = max(1, int(transformer_config.get("mobile_page_size", DEFAULT_MOBILE_PAGE_SIZE)))
        self.slow_connection_page_size = max(1, int(transformer_config.get(
            "slow_connection_page_size", DEFAULT_SLOW_CONNECTION_PAGE_SIZE)))
        if self.slow_connection_page_size > self.mobile_page_size:
            logger_content_transformer.warning(
                f"slow_connection_page_size ({self.slow_connection_page_size}) exceeds mobile_page_size "
                f"({self.mobile_page_size}); slow connections will not shrink pages further.")
        logger_content_transformer.info(
            f"ContentTransformer initialized. Handlers: {sorted(self._handlers)}, "
            f"page sizes mobile={self.mobile_page_size} slow={self.slow_connection_page_size}")
        return True

    def register(self, content_type: str, handler: Handler) -> None:
        self._handlers[content_type.lower()] = handler

    def optimize(self, profile: OptimizationProfile, content_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            logger_content_transformer.warning(
                f"Content payload for '{content_type}' is {type(payload).__name__}, not an object; returned unchanged.")
            return payload

        key = (content_type or "").lower()
        handler = self._handlers.get(key)
        if handler is None:
            self.fallbacks_used += 1
            logger_content_transformer.debug(f"No handler for content type '{content_type}'; using generic.")
            handler = self._handlers[GENERIC_CONTENT_TYPE]

        try:
            optimized = handler(profile, copy.deepcopy(payload))
        except Exception as e:
            self.failures += 1
            error = ContentOptimizationError(f"Handler for '{content_type}' failed: {e}")
            logger_content_transformer.exception(f"{profile.subject_id}: {error}. Returning original content.")
            return payload

        self.transforms_performed += 1
        return optimized

    # --- Handlers ---

    def _optimize_text(self, profile: OptimizationProfile, content: Dict[str, Any]) -> Dict[str, Any]:
        display = profile.ux_settings.display_optimization
        if display.font_size_multiplier != 1.0:
            content["font_size"] = f"{display.font_size_multiplier}em"
        if profile.device_info.connection_speed == ConnectionSpeed.SLOW:
            content["remove_non_essential_elements"] = True
            content["preload_next_article"] = False
        if display.enable_dark_mode:
            content["theme"] = "dark"
        return content

    def _optimize_image(self, profile: OptimizationProfile, content: Dict[str, Any]) -> Dict[str, Any]:
        image = profile.performance_settings.image_optimization
        content["quality"] = COMPRESSION_QUALITY[image.compression_level]
        content["max_width"] = min(content.get("max_width") or image.max_image_width, image.max_image_width)
        content["max_height"] = min(content.get("max_height") or image.max_image_height, image.max_image_height)
        if image.enable_webp:
            content["preferred_format"] = "webp"
        if image.enable_lazy_loading:
            content["lazy_load"] = True
        return content

    def _optimize_video(self, profile: OptimizationProfile, content: Dict[str, Any]) -> Dict[str, Any]:
        speed = profile.device_info.connection_speed
        content["quality"] = VIDEO_QUALITY_BY_SPEED[speed]
        if speed == ConnectionSpeed.SLOW:
            content["autoplay"] = False
            content["preload"] = "none"
        elif speed == ConnectionSpeed.MODERATE:
            content["preload"] = "metadata"
        if profile.performance_settings.battery_optimization.enable_battery_saver:
            content["autoplay"] = False
            content["preload"] = "none"
            content["reduced_quality"] = True
        return content

    def _optimize_list(self, profile: OptimizationProfile, content: Dict[str, Any]) -> Dict[str, Any]:
        items_per_page = content.get("items_per_page") or DEFAULT_ITEMS_PER_PAGE
        if profile.device_info.device_type == DeviceType.MOBILE:
            items_per_page = min(self.mobile_page_size, items_per_page)
            content["enable_infinite_scroll"] = True
        if profile.device_info.connection_speed == ConnectionSpeed.SLOW:
            items_per_page = min(self.slow_connection_page_size, items_per_page)
            content["preload_images"] = False
        content["items_per_page"] = items_per_page
        return content

    def _optimize_generic(self, profile: OptimizationProfile, content: Dict[str, Any]) -> Dict[str, Any]:
        settings = profile.performance_settings.content_optimization
        if settings.enable_minification:
            content["minified"] = True
        if settings.enable_content_caching:
            content["cacheable"] = True
            content["cache_timeout"] = settings.cache_timeout
        return content

    # --- Component protocol ---

    async def process(self, input_state: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        if not input_state or "profile" not in input_state:
            return None
        payload = input_state.get("payload", {})
        optimized = self.optimize(input_state["profile"], input_state.get("content_type", GENERIC_CONTENT_TYPE), payload)
        return {"optimized_content": optimized, "optimizations_applied": describe_optimizations(payload, optimized)}

    async def reset(self) -> None:
        self.transforms_performed = 0
        self.fallbacks_used = 0
        self.failures = 0
        logger_content_transformer.info("ContentTransformer counters reset.")

    async def get_status(self) -> Dict[str, Any]:
        return {
            "component": "ContentTransformer",
            "status": "operational",
            "content_types": sorted(self._handlers),
            "transforms_performed": self.transforms_performed,
            "fallbacks_used": self.fallbacks_used,
            "failures": self.failures,
        }

    async def shutdown(self) -> None:
        logger_content_transformer.info("ContentTransformer shutting down.")
