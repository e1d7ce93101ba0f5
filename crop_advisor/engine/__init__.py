"""
Matching and scoring engine: historical records in, crop advice out.

Modules
-------
matcher          : match_candidates() tolerance ladder + strict_match().
scorer           : CropScore aggregation, rank_crops() and label derivation.
confidence       : ladder_confidence() / strict_confidence() sub-scores.
rainfall_context : summarize_rainfall() over nearby stations.
predictor        : LadderPredictor / StrictPredictor query interface and
                   build_predictor() policy selection.
errors           : CropAdvisorError hierarchy.
"""
