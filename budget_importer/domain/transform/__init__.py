from .match_key import MatchKey, MatchKeyError, build_delimited_match_key
from .result import TransformResult
from .normalizer import Normalizer, NormalizerRule, NormalizerSpec
from .scale import NumberDetectionResult, ScaleCorrector, ScaleReport, analyze_prices, detect_scale
from .source_record import RawRow

__all__ = [
    "MatchKey",
    "MatchKeyError",
    "build_delimited_match_key",
    "RawRow",
    "TransformResult",
    "Normalizer",
    "NormalizerRule",
    "NormalizerSpec",
    "NumberDetectionResult",
    "ScaleCorrector",
    "ScaleReport",
    "analyze_prices",
    "detect_scale",
]
