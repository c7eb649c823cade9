from .aggregation import aggregate, natural_id_key, rank_assessments, ranking_key, summarize
from .cpm import compute_critical_path
from .factors import FACTOR_LABELS, FACTOR_NAMES, PortfolioContext, compute_factors
from .mitigation import STRATEGIES, MitigationResult, get_strategy, simulate_mitigation
from .normalizer import FIELD_ALIASES, NormalizationResult, normalize_activity, normalize_batch
from .scoring import FACTOR_WEIGHTS, SEVERITY_BANDS, assess_activities, assess_activity, score, severity_for

__all__ = [
    "FACTOR_LABELS",
    "FACTOR_NAMES",
    "FACTOR_WEIGHTS",
    "FIELD_ALIASES",
    "MitigationResult",
    "NormalizationResult",
    "PortfolioContext",
    "SEVERITY_BANDS",
    "STRATEGIES",
    "aggregate",
    "assess_activities",
    "assess_activity",
    "compute_critical_path",
    "compute_factors",
    "get_strategy",
    "natural_id_key",
    "normalize_activity",
    "normalize_batch",
    "rank_assessments",
    "ranking_key",
    "score",
    "severity_for",
    "simulate_mitigation",
    "summarize",
]
