from survey_engine.summary.manager import SummaryRenderer

__all__ = ["SummaryRenderer"]
