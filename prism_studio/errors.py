PROMPT_REQUIRED_MESSAGE = "プロンプトを入力してください。"
API_KEY_MISSING_MESSAGE = "GEMINI_API_KEY が設定されていません。"
INVALID_REQUEST_MESSAGE = "リクエストの形式が正しくありません。"
EMPTY_RESULT_MESSAGE = "画像生成 API から画像データが返却されませんでした。"
GENERIC_FAILURE_MESSAGE = "画像生成中にエラーが発生しました。"


class ImageGenerationError(Exception):
    status_code = 500


class PromptRequiredError(ImageGenerationError):
    status_code = 400

    def __init__(self, message: str = PROMPT_REQUIRED_MESSAGE) -> None:
        super().__init__(message)


class ConfigurationError(ImageGenerationError):
    def __init__(self, message: str = API_KEY_MISSING_MESSAGE) -> None:
        super().__init__(message)


class UpstreamError(ImageGenerationError):
    """The provider answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class EmptyResultError(ImageGenerationError):
    """The provider answered successfully but carried no inline image."""

    def __init__(self, message: str = EMPTY_RESULT_MESSAGE) -> None:
        super().__init__(message)
