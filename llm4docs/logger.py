import logging

logger = logging.getLogger("llm4docs")
