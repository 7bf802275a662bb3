from .upload_models import TaskHandle, UploadOutcome, UploadState
from .upload_queue import UploadQueue, interpret_response

__all__ = ["TaskHandle", "UploadOutcome", "UploadQueue", "UploadState", "interpret_response"]
