"""AWS Bedrock provider."""

import json
import logging
import re
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import settings
from ..domain import ModelConfiguration, ProviderConfiguration
from ..errors import ConfigInvalidError, TransportError
from .base import Provider, string_parameter

logger = logging.getLogger(__name__)

ANTHROPIC_BEDROCK_VERSION = "bedrock-2023-05-31"

_REGION_PATTERN = re.compile(r"^[a-z]{2}(-gov|-iso[a-z]*)?-[a-z]+-\d+$")


def _is_claude(model_id: str) -> bool:
    return model_id.startswith("anthropic.claude") or model_id.startswith("us.anthropic.claude")


def _is_llama(model_id: str) -> bool:
    return "llama" in model_id


def _is_titan(model_id: str) -> bool:
    return model_id.startswith("amazon.titan")


def build_request_body(prompt: str, model_config: ModelConfiguration) -> dict[str, Any]:
    """Build the invoke_model body for the model family of ``model_config``."""
    model_id = model_config.model_id

    if _is_claude(model_id):
        return {
            "anthropic_version": ANTHROPIC_BEDROCK_VERSION,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": model_config.max_tokens,
            "temperature": model_config.temperature,
            "top_p": model_config.top_p,
            "top_k": model_config.top_k,
        }
    if _is_llama(model_id):
        return {
            "prompt": prompt,
            "max_gen_len": model_config.max_tokens,
            "temperature": model_config.temperature,
            "top_p": model_config.top_p,
        }
    if _is_titan(model_id):
        return {
            "inputText": prompt,
            "textGenerationConfig": {
                "maxTokenCount": model_config.max_tokens,
                "temperature": model_config.temperature,
                "topP": model_config.top_p,
            },
        }
    return {
        "prompt": prompt,
        "max_tokens_to_sample": model_config.max_tokens,
        "temperature": model_config.temperature,
        "top_p": model_config.top_p,
    }


def extract_text(data: dict[str, Any], model_id: str) -> str:
    """Pull completion text out of a decoded invoke_model response."""
    if _is_claude(model_id):
        content = data.get("content")
        if isinstance(content, list) and content:
            return "".join(
                part.get("text", "") for part in content if part.get("type", "text") == "text"
            )
        return data.get("completion", "")
    if _is_llama(model_id):
        return data.get("generation", "")
    if _is_titan(model_id):
        results = data.get("results") or [{}]
        return results[0].get("outputText", "")
    return data.get("completion", "")


class BedrockProvider(Provider):
    """Foundation models hosted on AWS Bedrock."""

    provider_id = "aws-bedrock"
    display_name = "AWS Bedrock"
    supported_models = frozenset(
        {
            "anthropic.claude-3-sonnet-20240229-v1:0",
            "anthropic.claude-3-haiku-20240307-v1:0",
            "anthropic.claude-3-opus-20240229-v1:0",
            "anthropic.claude-3-5-sonnet-20240620-v1:0",
            "meta.llama3-8b-instruct-v1:0",
            "meta.llama3-70b-instruct-v1:0",
            "amazon.titan-text-express-v1",
            "amazon.titan-text-lite-v1",
        }
    )

    def __init__(self):
        super().__init__()
        self.region: Optional[str] = None
        self.client: Any = None

    def _configure(self, configuration: ProviderConfiguration) -> None:
        region = string_parameter(configuration, "region", settings.aws_region)
        if not region:
            raise ConfigInvalidError("AWS region is required", self.provider_id, "configure")
        if not _REGION_PATTERN.match(region):
            raise ConfigInvalidError(f"Invalid AWS region: {region}", self.provider_id, "configure")

        access_key_id = string_parameter(configuration, "accessKeyId")
        secret_access_key = string_parameter(configuration, "secretAccessKey")
        if bool(access_key_id) != bool(secret_access_key):
            raise ConfigInvalidError(
                "AWS credentials must include both accessKeyId and secretAccessKey",
                self.provider_id,
                "configure",
            )

        kwargs: dict[str, Any] = {"region_name": region}
        if access_key_id:
            logger.warning("Using explicit AWS credentials. Consider IAM roles or the default chain.")
            kwargs["aws_access_key_id"] = access_key_id
            kwargs["aws_secret_access_key"] = secret_access_key
            session_token = string_parameter(configuration, "sessionToken")
            if session_token:
                kwargs["aws_session_token"] = session_token
        endpoint_url = string_parameter(configuration, "endpointUrl")
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        try:
            self.client = boto3.client("bedrock-runtime", **kwargs)
        except (BotoCoreError, ValueError) as e:
            raise ConfigInvalidError(
                f"Failed to initialize AWS Bedrock client: {e}", self.provider_id, "configure"
            ) from e

        self.region = region
        logger.info(f"AWS Bedrock client initialized for region: {region}")

    def send_request(self, prompt: str, model_config: ModelConfiguration) -> str:
        """Invoke a Bedrock model and return its text."""
        if self.client is None:
            raise TransportError("Provider is not configured", self.provider_id, "send_request")

        model_id = model_config.model_id
        body = build_request_body(prompt, model_config)

        try:
            response = self.client.invoke_model(modelId=model_id, body=json.dumps(body))
            payload = response.get("body")
            raw = payload.read() if hasattr(payload, "read") else payload
            data = json.loads(raw)
        except (ClientError, BotoCoreError, ValueError, TypeError) as e:
            raise TransportError(
                f"Failed to send request to AWS Bedrock: {e}", self.provider_id, "send_request"
            ) from e

        text = extract_text(data, model_id)
        if not text or not text.strip():
            raise TransportError("Empty response from Bedrock model", self.provider_id, "send_request")
        return text

    def close(self) -> None:
        if self.client is not None:
            try:
                self.client.close()
                logger.info("AWS Bedrock client closed")
            except (BotoCoreError, AttributeError) as e:
                logger.warning(f"Error closing AWS Bedrock client: {e}")
            self.client = None
        super().close()
