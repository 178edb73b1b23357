"""Chat commands: rvo (reveal), viewonce (toggle), vostats, voclean"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Sequence

from . import detector
from .models import InboundEnvelope

if TYPE_CHECKING:
    from .service import ViewOnceService

logger = logging.getLogger(__name__)

TOGGLE_USAGE = "❓ Usage: .viewonce [on|off|groups|private|owner] [on|off]"
CLEAN_USAGE = "❓ Usage: .voclean [hours]"


def _on_off(value: bool) -> str:
    return "✅ ON" if value else "❌ OFF"


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}h {minutes}m {secs}s"


class ViewOnceCommands:
    """Thin handlers that format pipeline results and stats as chat text"""

    def __init__(self, service: "ViewOnceService"):
        self.service = service

    @property
    def channel(self):
        return self.service.channel

    async def dispatch(
        self,
        chat_id: str,
        name: str,
        params: Sequence[str],
        envelope: Optional[InboundEnvelope] = None,
    ) -> Any:
        name = name.lower().lstrip(".")
        if name == "rvo":
            return await self.reveal(chat_id, envelope)
        if name == "viewonce":
            return await self.toggle(chat_id, params)
        if name == "vostats":
            return await self.stats(chat_id)
        if name == "voclean":
            return await self.clean(chat_id, params)
        raise ValueError(f"Unknown view-once command: {name}")

    async def reveal(self, chat_id: str, envelope: Optional[InboundEnvelope]) -> Any:
        """Reveal the view-once message the command replies to"""
        quoted = envelope.quoted if envelope else None
        if quoted is None:
            return await self.channel.send_text(
                chat_id,
                "🔍 *Manual ViewOnce Reveal*\n\n❌ Please reply to a ViewOnce message to reveal it.",
            )
        if not detector.is_view_once(quoted):
            return await self.channel.send_text(
                chat_id, "❌ The replied message is not a ViewOnce message."
            )

        await self.channel.send_text(
            chat_id, "⚡ *Revealing ViewOnce*\n\n🔄 Processing ViewOnce message...\n⏳ Please wait..."
        )
        try:
            result = await self.service.reveal(quoted)
        except Exception as e:
            logger.error(f"RVO command failed: {e}", exc_info=True)
            return await self.channel.send_text(
                chat_id, f"❌ *ViewOnce Reveal Failed*\n\n🚫 Error: {e}"
            )

        if result and result.success:
            return await self.channel.send_text(
                chat_id,
                "✅ *ViewOnce Revealed Successfully*\n\n"
                f"📦 Type: {result.media_kind.value}\n"
                f"📁 Saved: {_yes_no(bool(result.saved_path))}\n"
                f"🔄 Forwarded: {_yes_no(result.forwarded)}\n"
                f"⏰ {datetime.now().strftime('%H:%M:%S')}",
            )
        error = (result.error_message if result else None) or "Unsupported ViewOnce content"
        return await self.channel.send_text(
            chat_id,
            "❌ *ViewOnce Reveal Failed*\n\n"
            f"🚫 Error: {error}\n"
            "🔧 Please try again or check the message format.",
        )

    async def toggle(self, chat_id: str, params: Sequence[str]) -> Any:
        """Show status or flip auto-forward and per-chat-kind flags"""
        if not params:
            cfg = self.service.config.snapshot()
            text = (
                "🔍 *ViewOnce Handler Status*\n\n"
                f"• Auto Forward: {_on_off(cfg.auto_forward)}\n"
                f"• Save to Temp: {_on_off(cfg.save_to_temp)}\n"
                f"• Groups: {_on_off(cfg.enable_in_groups)}\n"
                f"• Private: {_on_off(cfg.enable_in_private)}\n"
                f"• Skip Owner: {_on_off(cfg.skip_owner)}\n"
                f"• Temp Dir: {cfg.temp_dir}\n"
            )
            return await self.channel.send_text(chat_id, text)

        action = params[0].lower()
        state = not (len(params) > 1 and params[1].lower() == "off")

        if action == "on":
            self.service.update_config(auto_forward=True, save_to_temp=True)
            return await self.channel.send_text(chat_id, "✅ ViewOnce handler enabled!")
        if action == "off":
            self.service.update_config(auto_forward=False, save_to_temp=False)
            return await self.channel.send_text(chat_id, "❌ ViewOnce handler disabled!")
        if action == "groups":
            self.service.update_config(enable_in_groups=state)
            return await self.channel.send_text(
                chat_id,
                f"{'✅' if state else '❌'} ViewOnce in groups {'enabled' if state else 'disabled'}!",
            )
        if action == "private":
            self.service.update_config(enable_in_private=state)
            return await self.channel.send_text(
                chat_id,
                f"{'✅' if state else '❌'} ViewOnce in private {'enabled' if state else 'disabled'}!",
            )
        if action == "owner":
            self.service.update_config(skip_owner=state)
            return await self.channel.send_text(
                chat_id,
                f"{'✅' if state else '❌'} Skip owner {'enabled' if state else 'disabled'}!",
            )
        return await self.channel.send_text(chat_id, TOGGLE_USAGE)

    async def stats(self, chat_id: str) -> Any:
        stats = self.service.get_stats()
        cfg = stats["config"]
        text = (
            "📊 *ViewOnce Statistics*\n\n"
            f"• Processed: {stats['processed']}\n"
            f"• Forwarded: {stats['forwarded']}\n"
            f"• Saved: {stats['saved']}\n"
            f"• Errors: {stats['errors']}\n"
            f"• Uptime: {_format_uptime(stats['uptime_sec'])}\n"
            f"• Temp Directory: {stats['temp_dir']}\n"
            f"• Directory Exists: {'✅' if stats['temp_dir_exists'] else '❌'}\n"
            f"• Auto Forward: {'✅' if cfg['auto_forward'] else '❌'}\n"
            f"• Save to Temp: {'✅' if cfg['save_to_temp'] else '❌'}\n"
        )
        return await self.channel.send_text(chat_id, text)

    async def clean(self, chat_id: str, params: Sequence[str]) -> Any:
        """Evict temp files older than the given hours (default 1)"""
        hours = 1.0
        if params:
            try:
                hours = float(params[0])
            except ValueError:
                return await self.channel.send_text(chat_id, CLEAN_USAGE)
            if hours < 0:
                return await self.channel.send_text(chat_id, CLEAN_USAGE)

        result = await self.service.scheduler.run_once(max_age=hours * 3600)
        if result is None:
            return await self.channel.send_text(
                chat_id, "⚠️ Cleanup did not run: another sweep is in progress or it failed"
            )
        return await self.channel.send_text(
            chat_id,
            f"🧹 Cleaned {result.removed} ViewOnce temp file(s) older than {hours:g} hour(s)",
        )
