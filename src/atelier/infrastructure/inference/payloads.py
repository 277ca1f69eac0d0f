"""
Wire shapes of the inference service.

Request builders return plain JSON-ready dicts. Extractors take a parsed
response body and return the expected payload, or None when the body does
not have the expected shape.
"""

from typing import Any, Optional

from atelier.core.domain.models import ImageReference


def image_generation_body(model: str, prompt: str, n: int = 1, size: str = "1024x1024") -> dict[str, Any]:
    return {"model": model, "prompt": prompt, "n": n, "size": size}


def imagen_body(prompt: str, sample_count: int = 1) -> dict[str, Any]:
    return {"instances": {"prompt": prompt}, "parameters": {"sampleCount": sample_count}}


def vision_body(model: str, image: ImageReference, instruction: str) -> dict[str, Any]:
    return {
        "model": model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": instruction},
                    {"type": "image_url", "image_url": {"url": image.as_url()}},
                ],
            }
        ],
    }


def chat_body(model: str, messages: list[dict[str, str]], temperature: Optional[float] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"model": model, "messages": messages}
    if temperature is not None:
        body["temperature"] = temperature
    return body


def extract_image_url(body: Any) -> Optional[str]:
    """`{data: [{url}]}` -> url"""
    data = body.get("data") if isinstance(body, dict) else None
    if not data:
        return None
    url = data[0].get("url")
    return url if isinstance(url, str) and url else None


def extract_imagen_image(body: Any) -> Optional[str]:
    """`{predictions: [{bytesBase64Encoded}]}` -> PNG data URL"""
    predictions = body.get("predictions") if isinstance(body, dict) else None
    if not predictions:
        return None
    encoded = predictions[0].get("bytesBase64Encoded")
    if not isinstance(encoded, str) or not encoded:
        return None
    return f"data:image/png;base64,{encoded}"


def extract_completion(body: Any) -> Optional[str]:
    """`{choices: [{message: {content}}]}` -> content"""
    choices = body.get("choices") if isinstance(body, dict) else None
    if not choices:
        return None
    content = (choices[0].get("message") or {}).get("content")
    return content if isinstance(content, str) else None
