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

"""Resolves Keystone tokens into caller identities."""

import requests

from k8s_keystone_auth import exception
from k8s_keystone_auth.common import logging
from k8s_keystone_auth.policy import rules


LOG = logging.getLogger(__name__)

AUTH_TOKEN_HEADER = 'X-Auth-Token'
SUBJECT_TOKEN_HEADER = 'X-Subject-Token'


def identity_v3_url(auth_url):
    """Return the Keystone v3 base URL for `auth_url`."""
    if not auth_url:
        raise exception.ConfigurationError(reason='Auth URL is empty')
    url = auth_url.rstrip('/')
    if not url.endswith('/v3'):
        url += '/v3'
    return url


class KeystoneIdentityResolver(object):
    """Validates tokens against the Keystone v3 identity API.

    The caller's own token authorizes the lookup, so no service credentials
    are needed.

    """

    def __init__(self, auth_url, ca_file=None, timeout=5, session=None):
        self.auth_url = auth_url
        self.endpoint = identity_v3_url(auth_url)
        self.timeout = timeout
        self.session = session or requests.Session()
        if ca_file:
            self.session.verify = ca_file

    def resolve(self, token):
        """Look up the identity owning `token`.

        :returns: a :class:`rules.Identity`
        :raises: :class:`exception.AuthenticationError`

        """
        if not token:
            raise exception.AuthenticationError(reason='token is empty')

        headers = {AUTH_TOKEN_HEADER: token, SUBJECT_TOKEN_HEADER: token}
        try:
            resp = self.session.get(self.endpoint + '/auth/tokens',
                                    headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            LOG.warning('Failed to reach keystone at %s: %s',
                        self.endpoint, e)
            raise exception.AuthenticationError(reason='keystone unreachable')

        if resp.status_code != 200:
            LOG.debug('Keystone rejected token with status %s',
                      resp.status_code)
            raise exception.AuthenticationError(
                reason='keystone returned %s' % resp.status_code)

        try:
            token_ref = resp.json()['token']
        except (ValueError, KeyError):
            raise exception.AuthenticationError(
                reason='unexpected keystone response')
        return identity_from_token(token_ref)


def identity_from_token(token_ref):
    """Build a :class:`rules.Identity` from a Keystone v3 token body."""
    user = token_ref.get('user') or {}
    if not user.get('name'):
        raise exception.AuthenticationError(reason='token has no user')
    project = token_ref.get('project') or {}
    domain = user.get('domain') or {}
    roles = [role['name'] for role in token_ref.get('roles') or []
             if role.get('name')]
    return rules.Identity(user_name=user['name'],
                          user_id=user.get('id'),
                          project_id=project.get('id'),
                          project_name=project.get('name'),
                          domain_name=domain.get('name'),
                          roles=roles)
