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

"""Turns policy text into a validated :class:`RuleSet`.

Policy text is a JSON list of rule records, for example::

    [
        {"users": ["alice"], "verb": "*", "resource": "*"},
        {"roles": ["viewer"], "verb": "get", "resource": "pods",
         "namespace": "default"},
        {"roles": ["member"], "verb": "get", "nonResourcePath": "/healthz"},
        {"projects": ["demo"], "verb": "delete", "resource": "*",
         "effect": "deny"}
    ]

Loading is all or nothing: the first bad record aborts the load.

"""

import json

from k8s_keystone_auth import exception
from k8s_keystone_auth.common import logging
from k8s_keystone_auth.policy import rules


LOG = logging.getLogger(__name__)

# policy key -> PolicyRule attribute
ACTION_KEYS = {
    'verb': 'verb',
    'apiGroup': 'api_group',
    'resource': 'resource',
    'namespace': 'namespace',
    'resourceName': 'resource_name',
    'nonResourcePath': 'non_resource_path',
}
IDENTITY_KEYS = ('users', 'roles', 'projects', 'domains')
KNOWN_KEYS = frozenset(list(ACTION_KEYS) + list(IDENTITY_KEYS) + ['effect'])


def load(raw_text):
    """Parse `raw_text` into a :class:`rules.RuleSet`.

    :raises: :class:`exception.PolicyParseError` naming the position of the
             first record that could not be parsed or validated.

    """
    if raw_text is None or not raw_text.strip():
        return rules.EMPTY

    try:
        records = json.loads(raw_text)
    except ValueError as e:
        raise exception.PolicyParseError(index=None,
                                         reason='invalid JSON: %s' % e)

    if not isinstance(records, list):
        raise exception.PolicyParseError(
            index=None, reason='policy must be a list of rules')

    parsed = []
    for index, record in enumerate(records):
        try:
            rule = parse_rule(record)
            rule.validate()
        except exception.InvalidRuleError as e:
            raise exception.PolicyParseError(index=index, reason=str(e))
        parsed.append(rule)

    LOG.debug('Loaded %d policy rules', len(parsed))
    return rules.RuleSet(parsed)


def parse_rule(record):
    """Build a :class:`rules.PolicyRule` from a single decoded record.

    The result is not validated.

    """
    if not isinstance(record, dict):
        raise exception.InvalidRuleError(field='rule',
                                          reason='must be an object')

    unknown = sorted(set(record) - KNOWN_KEYS)
    if unknown:
        raise exception.InvalidRuleError(
            field=unknown[0], reason='unknown field')

    kwargs = {}
    for key, attr in ACTION_KEYS.items():
        if key not in record:
            continue
        value = record[key]
        if not isinstance(value, str):
            raise exception.InvalidRuleError(field=key,
                                             reason='must be a string')
        kwargs[attr] = rules.matcher(value)

    for key in IDENTITY_KEYS:
        value = record.get(key, [])
        if isinstance(value, str) or not isinstance(value, list):
            raise exception.InvalidRuleError(field=key,
                                             reason='must be a list')
        kwargs[key] = _dedupe(value)

    effect = record.get('effect', rules.ALLOW)
    if not isinstance(effect, str):
        raise exception.InvalidRuleError(field='effect',
                                         reason='must be a string')
    kwargs['effect'] = effect.lower()

    return rules.PolicyRule(**kwargs)


def dump(rule_set):
    """Serialize `rule_set` back into policy text."""
    records = []
    for rule in rule_set:
        record = {}
        for key in IDENTITY_KEYS:
            if getattr(rule, key):
                record[key] = list(getattr(rule, key))
        for key, attr in ACTION_KEYS.items():
            field = getattr(rule, attr)
            if field is not None:
                record[key] = str(field)
        record['effect'] = rule.effect
        records.append(record)
    return json.dumps(records, indent=2)


def _dedupe(values):
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen
