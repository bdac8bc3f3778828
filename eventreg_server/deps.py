# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Dependencies for process-wide services created in the app lifespan."""

from fastapi import Request

from eventreg_server.services.dispatcher import BackgroundDispatcher
from eventreg_server.services.whatsapp import UltraMsgGateway


def get_gateway(request: Request) -> UltraMsgGateway:
    return request.app.state.gateway


def get_dispatcher(request: Request) -> BackgroundDispatcher:
    return request.app.state.dispatcher
