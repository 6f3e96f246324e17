# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
WSGI middleware that catches exceptions raised by the application and
returns proper error pages.

:class:`~appwire.http_error.HTTPError` is sent with its own status code,
any other exception as '500 Internal Server Error' (the traceback is logged).
"""

import traceback

from appwire import util
from appwire.http_error import (
    HTTP_INTERNAL_ERROR,
    HTTP_NO_CONTENT,
    HTTP_NOT_MODIFIED,
    HTTPError,
    as_HTTPError,
    get_http_status_string,
)
from appwire.mw.wsgi_mw import BaseWsgiMiddleware

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


# ========================================================================
# ErrorPrinter
# ========================================================================
class ErrorPrinter(BaseWsgiMiddleware):
    def __init__(self, app, next_app, config):
        super().__init__(app, next_app, config)
        self.err_config = util.get_dict_value(config, "error_printer", as_dict=True)

    def is_disabled(self):
        return self.err_config.get("enable") is False

    def __call__(self, environ, start_response):
        # Intercept start_response
        sub_app_start_response = util.SubAppStartResponse()

        try:
            try:
                # The next app may return a generator, so we must iterate here
                # in order to catch its exceptions
                response_started = False
                app_iter = self.next_app(environ, sub_app_start_response)
                for v in app_iter:
                    if not response_started:
                        start_response(
                            sub_app_start_response.status,
                            sub_app_start_response.response_headers,
                            sub_app_start_response.exc_info,
                        )
                    response_started = True

                    yield v

                if hasattr(app_iter, "close"):
                    app_iter.close()

                if not response_started:
                    start_response(
                        sub_app_start_response.status,
                        sub_app_start_response.response_headers,
                        sub_app_start_response.exc_info,
                    )
                return
            except HTTPError:
                raise  # Deliberately generated or already converted
            except Exception as e:
                _logger.error(f"{traceback.format_exc(10)}")
                raise as_HTTPError(e) from None
        except HTTPError as e:
            _logger.debug(f"Caught {e}")

            status = get_http_status_string(e)
            if e.value == HTTP_INTERNAL_ERROR:
                _logger.error(f"Internal server error: {e.src_exception!r}")
            elif e.value in (HTTP_NOT_MODIFIED, HTTP_NO_CONTENT):
                # These codes don't have content
                start_response(
                    status, [("Content-Length", "0"), ("Date", util.get_rfc1123_time())]
                )
                yield b""
                return

            content_type, body = e.get_response_page()
            headers = e.add_headers or []
            start_response(
                status,
                [
                    ("Content-Type", content_type),
                    ("Content-Length", str(len(body))),
                    ("Date", util.get_rfc1123_time()),
                ]
                + headers,
            )
            yield body
            return
