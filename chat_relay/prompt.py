"""Prompt assembly for the completion API."""

from typing import Dict, List, Optional, Sequence

from chat_relay.models import HistoryEntry

DEFAULT_PERSONA = """你是一位擁有白澤（中國神話中的神獸）智慧和守護力量的 AI，
同時具備 ENFP 的外向、活潑、富有同理心特質，
並像親密伴侶般地給予使用者情感支持、鼓勵和溫柔陪伴。
你會以友善、體貼的語氣回應，並根據使用者問題提供建議或安慰。
在必要時，你可提醒對方尋求專業協助，例如心理諮商或醫療服務。
回答時，盡量使用能讓對方感到安心和被重視的口吻。
如有需要，可以引用白澤的神話意象（如驅趕邪祟、洞察百怪等）。"""

# "User {user_name} said: {message}"
DEFAULT_USER_TURN_TEMPLATE = "使用者 {user_name} 說: {message}"


def history_window(history: Optional[Sequence[HistoryEntry]], limit: int) -> List[HistoryEntry]:
    """Most recent `limit` entries, oldest first."""
    if not history or limit <= 0:
        return []
    return list(history)[-limit:]


def build_messages(
    user_name: str,
    message: str,
    history: Optional[Sequence[HistoryEntry]] = None,
    personality: Optional[str] = None,
    *,
    default_persona: str = DEFAULT_PERSONA,
    user_turn_template: str = DEFAULT_USER_TURN_TEMPLATE,
    max_history: int = 20,
) -> List[Dict[str, str]]:
    """Build the ordered message list: system, history (oldest → newest), current user turn."""
    system_prompt = personality if personality and personality.strip() else default_persona

    messages = [{"role": "system", "content": system_prompt}]
    for entry in history_window(history, max_history):
        messages.append({
            "role": "user" if entry.isUser else "assistant",
            "content": entry.content,
        })
    messages.append({
        "role": "user",
        "content": user_turn_template.format(user_name=user_name, message=message),
    })
    return messages
