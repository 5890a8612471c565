"""Scene description through a vision-language model."""

from vision_module.scene_analyzer import NetworkError, ParseError, SceneAnalysisError, SceneAnalyzer

__all__ = [
    "NetworkError",
    "ParseError",
    "SceneAnalysisError",
    "SceneAnalyzer",
]
