"""
Demo Module

데모 계정 시드/정리 파이프라인과 협력자 인터페이스.
"""

from core.demo.collaborators import DemoCollaborators, DemoStatus
from core.demo.memory_backend import InMemoryDemoBackend

__all__ = [
    "DemoCollaborators",
    "DemoStatus",
    "InMemoryDemoBackend",
]
