from .client import AddRecordsResult, KintoneApiError, KintoneClient

__all__ = ["AddRecordsResult", "KintoneApiError", "KintoneClient"]
