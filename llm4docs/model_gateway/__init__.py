from .ModelGateway import ModelGateway, ScriptedModelGateway
from .OllamaModelGateway import OllamaModelGateway

__all__ = ["ModelGateway", "ScriptedModelGateway", "OllamaModelGateway"]
