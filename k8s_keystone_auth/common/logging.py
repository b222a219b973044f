# vim: tabstop=4 shiftwidth=4 softtabstop=4

# Copyright 2017 OpenStack Foundation
#
# Licensed under the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License. You may obtain
# a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations
# under the License.

"""Wrapper for built-in logging module."""

import logging
import logging.config
import logging.handlers


from logging import CRITICAL  # noqa
from logging import DEBUG  # noqa
from logging import ERROR  # noqa
from logging import Formatter  # noqa
from logging import INFO  # noqa
from logging import StreamHandler  # noqa
from logging import WARNING  # noqa
from logging import getLogger  # noqa
from logging import root  # noqa
from logging.handlers import SysLogHandler  # noqa
from logging.handlers import WatchedFileHandler  # noqa

config = logging.config
