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

"""Main entry point into the Policy service."""

import eventlet

from k8s_keystone_auth import exception
from k8s_keystone_auth.common import logging
from k8s_keystone_auth.policy import engine
from k8s_keystone_auth.policy import loader
from k8s_keystone_auth.policy import store as policy_store


LOG = logging.getLogger(__name__)

REASON_DISABLED = 'authorization disabled'
REASON_NO_MATCH = 'no matching policy rule'


class Authorizer(object):
    """Turns policy decisions into webhook verdicts.

    Without a store the authorizer is disabled and allows everything, so
    callers can tell "no policy engine" apart from "policy denies".

    """

    def __init__(self, store=None, deny_by_default=False):
        self.store = store
        self.deny_by_default = deny_by_default

    @property
    def enabled(self):
        return self.store is not None

    def authorize(self, identity, action):
        """Decide whether `identity` may perform `action`.

        :returns: a tuple of (allowed, reason)

        """
        if self.store is None:
            return True, REASON_DISABLED

        rule_set = self.store.current()
        try:
            decision = engine.evaluate(identity, action, rule_set,
                                       deny_by_default=self.deny_by_default)
        except exception.MalformedRequestError as e:
            LOG.warning('Denying %s: %s', identity.user_name, e)
            return False, str(e)

        LOG.debug('%s %s by %r for %s', action.verb,
                  action.non_resource_path or action.resource,
                  decision, identity.user_name)

        if decision.outcome == engine.ALLOW:
            return True, 'allowed by rule %d' % decision.rule_index
        if decision.outcome == engine.DENY and decision.rule_index is not None:
            return False, 'explicitly denied by rule %d' % decision.rule_index
        return False, REASON_NO_MATCH


class PolicyReloader(object):
    """Periodically reloads a :class:`policy_store.PolicyStore`."""

    def __init__(self, store, source, interval):
        self.store = store
        self.source = source
        self.interval = interval
        self.greenthread = None

    def reload(self):
        return self.store.reload(self.source)

    def schedule_reload(self):
        """Reload in a new green thread, safe to call from a signal handler."""
        eventlet.spawn_n(self.reload)

    def start(self):
        if self.interval <= 0 or self.greenthread is not None:
            return
        LOG.info('Reloading policy from %s every %s seconds',
                 self.source, self.interval)
        self.greenthread = eventlet.spawn(self._run)

    def stop(self):
        if self.greenthread is not None:
            self.greenthread.kill()
            self.greenthread = None

    def _run(self):
        while True:
            eventlet.sleep(self.interval)
            try:
                self.reload()
            except Exception:
                LOG.exception('Unexpected error reloading policy from %s',
                              self.source)


def build(source, deny_by_default=False):
    """Create an :class:`Authorizer` for `source`.

    A None `source` yields a disabled authorizer. The initial load must
    succeed; later reload failures keep the last good policy.

    :raises: :class:`exception.PolicySourceError` or
             :class:`exception.PolicyParseError`

    """
    if source is None:
        LOG.warning('No policy source configured, authorization disabled')
        return Authorizer()

    store = policy_store.PolicyStore(loader.load(source.fetch()))
    LOG.info('Loaded %d policy rules from %s', len(store.current()), source)
    return Authorizer(store, deny_by_default=deny_by_default)
