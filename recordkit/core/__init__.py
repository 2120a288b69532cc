"""
Core record validation: types, expressions, definitions, validators and the pipeline.
"""
