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

"""Holds the RuleSet currently used to authorize requests."""

import threading

from k8s_keystone_auth import exception
from k8s_keystone_auth.common import logging
from k8s_keystone_auth.policy import loader
from k8s_keystone_auth.policy import rules


LOG = logging.getLogger(__name__)


class PolicyStore(object):
    """Publishes one immutable :class:`rules.RuleSet` at a time.

    Readers take a reference with :meth:`current` and never block. Writers
    build the replacement completely before :meth:`swap` publishes it with a
    single attribute assignment, so a reader sees either the old set or the
    new one.

    """

    def __init__(self, rule_set=None):
        self._lock = threading.Lock()
        self._rule_set = rule_set if rule_set is not None else rules.EMPTY
        self._loaded = rule_set is not None

    @property
    def loaded(self):
        """True once a RuleSet has been installed."""
        return self._loaded

    def current(self):
        return self._rule_set

    def swap(self, rule_set):
        if not isinstance(rule_set, rules.RuleSet):
            raise TypeError('expected a RuleSet, got %s' %
                            type(rule_set).__name__)
        with self._lock:
            previous = self._rule_set
            self._rule_set = rule_set
            self._loaded = True
        return previous

    def reload(self, source):
        """Fetch, parse and install the policy held by `source`.

        On failure the error is logged and the last good RuleSet stays in
        place.

        :returns: True if a new RuleSet was installed.

        """
        try:
            rule_set = loader.load(source.fetch())
        except exception.PolicySourceError as e:
            LOG.error('Policy reload failed, keeping %d rules: %s',
                      len(self._rule_set), e)
            return False
        except exception.PolicyParseError as e:
            LOG.error('Policy from %s rejected, keeping %d rules: %s',
                      source, len(self._rule_set), e)
            return False

        if self._loaded and rule_set == self._rule_set:
            LOG.debug('Policy from %s unchanged', source)
            return False

        self.swap(rule_set)
        LOG.info('Loaded %d policy rules from %s', len(rule_set), source)
        LOG.debug('Policy %s', loader.dump(rule_set))
        return True
