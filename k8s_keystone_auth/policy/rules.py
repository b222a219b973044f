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

"""Value types consumed by the policy engine.

Every type in here is immutable once constructed: a :class:`RuleSet` is
shared between concurrent request handlers and is replaced wholesale on
reload, never edited in place.

"""

from k8s_keystone_auth import exception


WILDCARD_TOKEN = '*'

ALLOW = 'allow'
DENY = 'deny'
EFFECTS = (ALLOW, DENY)

VERBS = frozenset(['get', 'list', 'watch', 'create', 'update', 'patch',
                   'delete', 'deletecollection'])

ACTION_FIELDS = ('verb', 'api_group', 'resource', 'namespace',
                 'resource_name', 'non_resource_path')
RESOURCE_FIELDS = ('api_group', 'resource', 'namespace', 'resource_name')
IDENTITY_FIELDS = ('users', 'roles', 'projects', 'domains')


class Wildcard(object):
    """Matches any non-empty value of a field.

    An empty namespace marks a cluster-scoped request and an empty resource
    a non-resource one; neither is matched by a wildcard. Rules reach those
    requests by leaving the field out.

    """

    __slots__ = ()

    def matches(self, value):
        return bool(value)

    def __eq__(self, other):
        return isinstance(other, Wildcard)

    def __hash__(self):
        return hash(WILDCARD_TOKEN)

    def __repr__(self):
        return 'Wildcard()'

    def __str__(self):
        return WILDCARD_TOKEN


WILDCARD = Wildcard()


class Literal(object):
    """Matches exactly one value of a field, case-sensitively."""

    __slots__ = ('value',)

    def __init__(self, value):
        object.__setattr__(self, 'value', value)

    def __setattr__(self, name, value):
        raise AttributeError('Literal is immutable')

    def matches(self, value):
        return value == self.value

    def __eq__(self, other):
        return isinstance(other, Literal) and other.value == self.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return 'Literal(%r)' % self.value

    def __str__(self):
        return self.value


def matcher(value):
    """Turn a policy field value into a matcher.

    ``None`` stays ``None`` (the field is unconstrained), the wildcard token
    becomes :data:`WILDCARD` and anything else is a :class:`Literal`.

    """
    if value is None:
        return None
    if value == WILDCARD_TOKEN:
        return WILDCARD
    return Literal(value)


class _Frozen(object):
    """Attributes can only be assigned from ``__init__`` via ``_set``."""

    __slots__ = ()

    def _set(self, name, value):
        object.__setattr__(self, name, value)

    def __setattr__(self, name, value):
        raise AttributeError('%s is immutable' % self.__class__.__name__)

    def _key(self):
        return tuple(getattr(self, name) for name in self.__slots__)

    def __eq__(self, other):
        return type(other) is type(self) and other._key() == self._key()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return '%s(%s)' % (self.__class__.__name__,
                           ', '.join('%s=%r' % (name, getattr(self, name))
                                     for name in self.__slots__))


class Identity(_Frozen):
    """Attributes of an authenticated caller."""

    __slots__ = ('user_name', 'user_id', 'project_id', 'project_name',
                 'domain_name', 'roles')

    def __init__(self, user_name, user_id='', project_id='',
                 project_name='', domain_name='', roles=()):
        if not user_name:
            raise exception.MalformedRequestError(reason='user is empty')
        self._set('user_name', user_name)
        self._set('user_id', user_id or '')
        self._set('project_id', project_id or '')
        self._set('project_name', project_name or '')
        self._set('domain_name', domain_name or '')
        self._set('roles', frozenset(roles or ()))


class Action(_Frozen):
    """The operation a caller is attempting.

    Resource requests populate ``api_group``, ``resource``, ``namespace``
    and ``resource_name``; requests for non-resource URLs such as
    ``/healthz`` populate ``non_resource_path`` only. An empty
    ``namespace`` means the request is cluster-scoped.

    """

    __slots__ = ACTION_FIELDS

    def __init__(self, verb, api_group='', resource='', namespace='',
                 resource_name='', non_resource_path=''):
        self._set('verb', verb or '')
        self._set('api_group', api_group or '')
        self._set('resource', resource or '')
        self._set('namespace', namespace or '')
        self._set('resource_name', resource_name or '')
        self._set('non_resource_path', non_resource_path or '')

    def validate(self):
        """Reject actions that carry contradictory fields.

        :raises: :class:`exception.MalformedRequestError`

        """
        if not self.verb:
            raise exception.MalformedRequestError(reason='verb is empty')
        if self.non_resource_path:
            populated = [name for name in RESOURCE_FIELDS
                         if getattr(self, name)]
            if populated:
                raise exception.MalformedRequestError(
                    reason='non-resource path %s combined with %s' % (
                        self.non_resource_path, ', '.join(populated)))


class PolicyRule(_Frozen):
    """A single authorization rule.

    Action fields hold a :class:`Literal`, :data:`WILDCARD` or ``None`` when
    the author left them out. Identity fields are tuples of names; an empty
    tuple places no constraint on the caller.

    """

    __slots__ = ACTION_FIELDS + IDENTITY_FIELDS + ('effect',)

    def __init__(self, verb=None, api_group=None, resource=None,
                 namespace=None, resource_name=None, non_resource_path=None,
                 users=(), roles=(), projects=(), domains=(), effect=ALLOW):
        self._set('verb', verb)
        self._set('api_group', api_group)
        self._set('resource', resource)
        self._set('namespace', namespace)
        self._set('resource_name', resource_name)
        self._set('non_resource_path', non_resource_path)
        self._set('users', tuple(users or ()))
        self._set('roles', tuple(roles or ()))
        self._set('projects', tuple(projects or ()))
        self._set('domains', tuple(domains or ()))
        self._set('effect', effect)

    def validate(self):
        """Check the rule is well formed.

        :raises: :class:`exception.InvalidRuleError`

        """
        for name in ACTION_FIELDS:
            field = getattr(self, name)
            if field is None or field is WILDCARD:
                continue
            if not isinstance(field, Literal):
                raise exception.InvalidRuleError(
                    field=name, reason='expected a literal or wildcard')
            if not isinstance(field.value, str) or not field.value:
                raise exception.InvalidRuleError(
                    field=name, reason='must be a non-empty string')

        if isinstance(self.verb, Literal) and self.verb.value not in VERBS:
            raise exception.InvalidRuleError(
                field='verb', reason='unknown verb %s' % self.verb.value)

        if self.non_resource_path is not None:
            for name in RESOURCE_FIELDS:
                if getattr(self, name) is not None:
                    raise exception.InvalidRuleError(
                        field=name,
                        reason='cannot be combined with nonResourcePath')

        for name in IDENTITY_FIELDS:
            for value in getattr(self, name):
                if not isinstance(value, str) or not value:
                    raise exception.InvalidRuleError(
                        field=name,
                        reason='entries must be non-empty strings')

        if self.effect not in EFFECTS:
            raise exception.InvalidRuleError(
                field='effect',
                reason='must be one of %s' % ', '.join(EFFECTS))

        if (all(getattr(self, name) is None for name in ACTION_FIELDS) and
                not any(getattr(self, name) for name in IDENTITY_FIELDS)):
            raise exception.InvalidRuleError(
                field='rule', reason='rule body is empty')

    def matches(self, identity, action):
        for name in ACTION_FIELDS:
            field = getattr(self, name)
            if field is not None and not field.matches(getattr(action, name)):
                return False

        if self.users and identity.user_name not in self.users:
            return False
        if self.roles and identity.roles.isdisjoint(self.roles):
            return False
        if self.projects and (identity.project_id not in self.projects and
                              identity.project_name not in self.projects):
            return False
        if self.domains and identity.domain_name not in self.domains:
            return False
        return True


class RuleSet(object):
    """An ordered, immutable sequence of :class:`PolicyRule`."""

    __slots__ = ('_rules',)

    def __init__(self, rules=()):
        self._rules = tuple(rules)

    def __len__(self):
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)

    def __getitem__(self, index):
        return self._rules[index]

    def __eq__(self, other):
        return isinstance(other, RuleSet) and other._rules == self._rules

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self._rules)

    def __repr__(self):
        return 'RuleSet(%d rules)' % len(self._rules)


EMPTY = RuleSet()
