"""Orchestrator module."""
from .processor import AnalysisOrchestrator, AnalysisResult, analyze_text

__all__ = ["AnalysisOrchestrator", "AnalysisResult", "analyze_text"]
