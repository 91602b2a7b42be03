"""Dividend analysis orchestration."""

from divvy.business.analysis.analyzer import BatchAnalysisResult, DividendAnalyzer, MarketData

__all__ = ["BatchAnalysisResult", "DividendAnalyzer", "MarketData"]
