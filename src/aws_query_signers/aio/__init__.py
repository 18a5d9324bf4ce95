# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from .dispatch import AIOHTTPDispatcher, DispatchResponse, RequestDispatcher

__all__ = ("AIOHTTPDispatcher", "DispatchResponse", "RequestDispatcher")
