"""Internal helpers for development-time logging."""