"""Namespace for error types; it holds no modules yet."""