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

"""Exceptions raised by the webhook and the policy engine."""


class Error(Exception):
    """Base error class.

    Child classes should define an HTTP status code, title, and a doc string.

    """
    code = None
    title = None

    def __init__(self, message=None, **kwargs):
        """Use the doc string as the error message by default."""
        self.kwargs = kwargs
        message = message or self.__doc__ % kwargs
        super(Error, self).__init__(message)


class ValidationError(Error):
    """Expecting to find %(attribute)s in %(target)s.

    The server could not comply with the request since it is either malformed
    or otherwise incorrect.

    The client is assumed to be in error.

    """
    code = 400
    title = 'Bad Request'


class InvalidRuleError(ValidationError):
    """Invalid policy rule field %(field)s: %(reason)s"""

    def __init__(self, field, reason):
        self.field = field
        self.reason = reason
        super(InvalidRuleError, self).__init__(field=field, reason=reason)


class PolicyParseError(ValidationError):
    """Unable to parse policy rule %(index)s: %(reason)s"""

    def __init__(self, index, reason):
        self.index = index
        self.reason = reason
        super(PolicyParseError, self).__init__(index=index, reason=reason)


class MalformedRequestError(ValidationError):
    """Malformed request: %(reason)s"""

    def __init__(self, reason):
        self.reason = reason
        super(MalformedRequestError, self).__init__(reason=reason)


class Unauthorized(Error):
    """The request you have made requires authentication."""
    code = 401
    title = 'Not Authorized'


class AuthenticationError(Unauthorized):
    """Keystone could not authenticate the caller: %(reason)s"""

    def __init__(self, reason):
        self.reason = reason
        super(AuthenticationError, self).__init__(reason=reason)


class ConfigurationError(Error):
    """Invalid configuration: %(reason)s"""
    code = 500
    title = 'Internal Server Error'

    def __init__(self, reason):
        self.reason = reason
        super(ConfigurationError, self).__init__(reason=reason)


class PolicySourceError(Error):
    """Unable to fetch policy from %(source)s: %(reason)s"""
    code = 500
    title = 'Internal Server Error'

    def __init__(self, source, reason):
        self.source = source
        self.reason = reason
        super(PolicySourceError, self).__init__(source=source, reason=reason)
