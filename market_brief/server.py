"""Flask app exposing the Telegram webhook and a manual test trigger."""

from __future__ import annotations

from flask import Flask, Response, jsonify, request

from utils.logging_setup import get_logger

from .bot import MarketBriefBot

logger = get_logger('server')


def create_app(bot: MarketBriefBot) -> Flask:
    app = Flask('market_brief')
    app.config['BOT'] = bot

    @app.get('/health')
    def health():
        return jsonify({'status': 'ok', 'breakers': bot.global_quotes.breaker_stats()})

    @app.get('/test')
    def test_briefing():
        try:
            body, status = bot.run_test()
        except Exception as e:
            logger.exception("Test briefing failed")
            return Response(f"Error: {e}", status=500)
        return jsonify(body), status

    @app.route('/', methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH'])
    def webhook():
        if request.method != 'POST':
            return Response('Method not allowed', status=405)
        try:
            outcome = bot.handle_update(request.get_json(force=True))
        except Exception:
            logger.exception("Webhook error")
            return Response('Internal server error', status=500)
        logger.debug(f"update handled: {outcome.action}")
        return Response(outcome.body, status=outcome.status_code)

    return app
