"""
Message pipeline module.

Provides the MessagePipeline that turns one inbound message into a
persisted, translated and delivered outcome.
"""
from .processor import MessagePipeline, InboundMessage, PipelineResult

__all__ = ["MessagePipeline", "InboundMessage", "PipelineResult"]
