"""
DaveMode: adaptive multi-agent project assistant

Routes natural-language project requests to external LLM agents for
creation, analysis and extension work:
- Clarification engine: multi-turn question/answer before a task proceeds
- Learning engine: success-rate statistics driving agent selection
- Orchestrator: creation, analysis and hybrid (extension) workflows
"""

__version__ = "0.1.0"
__all__ = [
    "__version__",
]
