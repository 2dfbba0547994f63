"""Gateway to the hosted multimodal model."""

from .gateway import AnalysisError, GatewayError, OutfitGateway, SearchError

__all__ = ["AnalysisError", "GatewayError", "OutfitGateway", "SearchError"]
