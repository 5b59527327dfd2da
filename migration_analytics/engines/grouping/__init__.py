"""
Grouping & Threshold Analytics Engine.

Filter -> Group -> Derive rise -> Common rise / Threshold ladder -> Rank.
"""
