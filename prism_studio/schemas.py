from pydantic import BaseModel


class GenerateImageRequest(BaseModel):
    prompt: str | None = None
    size: str | None = None


class GenerateImageResponse(BaseModel):
    imageUrl: str


class ErrorResponse(BaseModel):
    error: str
