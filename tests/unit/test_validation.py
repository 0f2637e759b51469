"""
Tests for name resolution and static validation of Starlark files.

Sources go through the real parser; a few trees the parser cannot produce
($error$ placeholders, broken invariants) are built by hand.
"""

import pytest

from starlark_resolver.compiler.starlark_file import StarlarkFile
from starlark_resolver.passes.validation import (
    ValidationEnvironment, invalid_identifier_message, validate_file,
)
from starlark_resolver.runtime.environment import Environment, FlagGuardedValue, StarlarkSemantics
from starlark_resolver.shared.errors import StarlarkImplementationError
from starlark_resolver.shared.nodes import ExpressionStatement, Identifier
from starlark_resolver.shared.scope import Scope, ScopeChain
from tests.test_utils import identifiers, loc, messages, validate

FOR_AT_TOP_LEVEL = (
    "for loops are not allowed at the top level. You may move it inside a function "
    "or use a comprehension, [f(x) for x in sequence]"
)
IF_AT_TOP_LEVEL = (
    "if statements are not allowed at the top level. You may move it inside a function "
    "or use an if expression (x if condition else y)."
)


class TestForwardReferences:

    def test_functions_may_call_each_other_in_any_order(self):
        file = validate(
            "def f():\n"
            "    return g()\n"
            "\n"
            "def g():\n"
            "    return f()\n"
        )
        assert file.ok(), messages(file)

    def test_local_used_before_assignment_is_resolved(self):
        file = validate(
            "def f():\n"
            "    print(a)\n"
            "    a = 1\n"
        )
        assert file.ok(), messages(file)

    def test_global_used_in_function_before_definition(self):
        file = validate(
            "def f():\n"
            "    return CONST\n"
            "\n"
            "CONST = 3\n"
        )
        assert file.ok(), messages(file)


class TestModuleRebinding:

    def test_module_level_rebinding_reported(self):
        file = validate("x = 1\nx = 2\n")
        assert len(file.errors()) >= 1
        assert any("x" in m and "read only" in m for m in messages(file))

    def test_local_rebinding_allowed(self):
        file = validate(
            "def f():\n"
            "    x = 1\n"
            "    x = 2\n"
            "    return x\n"
        )
        assert file.ok(), messages(file)

    def test_local_may_shadow_global(self):
        file = validate(
            "x = 1\n"
            "def f():\n"
            "    x = 2\n"
            "    return x\n"
        )
        assert file.ok(), messages(file)

    def test_def_rebinding_a_global(self):
        file = validate("f = 1\ndef f():\n    pass\n")
        assert messages(file) == [
            "Variable f is read only (read more at "
            "https://bazel.build/versions/master/docs/skylark/errors/read-only-variable.html)"
        ]

    def test_build_file_allows_rebinding(self):
        file = validate("x = 1\nx = 2\n", is_build_file=True)
        assert file.ok(), messages(file)


class TestLoopControl:

    @pytest.mark.parametrize("kind", ["break", "continue"])
    def test_at_top_level(self, kind):
        file = validate(f"{kind}\n")
        assert messages(file) == [f"{kind} statement must be inside a for loop"]

    @pytest.mark.parametrize("kind", ["break", "continue"])
    def test_in_function_outside_loop(self, kind):
        file = validate(f"def f():\n    {kind}\n")
        assert messages(file) == [f"{kind} statement must be inside a for loop"]

    @pytest.mark.parametrize("kind", ["break", "continue"])
    def test_inside_loop_in_function(self, kind):
        file = validate(
            "def f(items):\n"
            "    for x in items:\n"
            "        if x:\n"
            f"            {kind}\n"
        )
        assert file.ok(), messages(file)

    def test_after_loop_ends(self):
        file = validate(
            "def f(items):\n"
            "    for x in items:\n"
            "        pass\n"
            "    break\n"
        )
        assert messages(file) == ["break statement must be inside a for loop"]

    def test_pass_is_always_legal(self):
        file = validate("pass\ndef f():\n    pass\n")
        assert file.ok(), messages(file)

    def test_break_in_top_level_loop_only_reports_the_loop(self):
        file = validate("for x in []:\n    break\n")
        assert messages(file) == [FOR_AT_TOP_LEVEL]


class TestTopLevelStatements:

    def test_for_at_top_level(self):
        file = validate("for x in [1, 2]:\n    pass\n")
        assert messages(file) == [FOR_AT_TOP_LEVEL]

    def test_if_at_top_level(self):
        file = validate("if True:\n    pass\n")
        assert messages(file) == [IF_AT_TOP_LEVEL]

    def test_one_diagnostic_per_occurrence(self):
        file = validate(
            "for x in []:\n    pass\n"
            "for y in []:\n    pass\n"
            "if x:\n    pass\n"
        )
        assert messages(file) == [FOR_AT_TOP_LEVEL, FOR_AT_TOP_LEVEL, IF_AT_TOP_LEVEL]

    def test_for_and_if_inside_function(self):
        file = validate(
            "def f(items):\n"
            "    for x in items:\n"
            "        if x:\n"
            "            return x\n"
            "        elif x == 0:\n"
            "            return 0\n"
            "        else:\n"
            "            pass\n"
        )
        assert file.ok(), messages(file)

    def test_return_at_top_level(self):
        file = validate("return 1\n")
        assert messages(file) == ["return statements must be inside a function"]

    def test_return_inside_comprehension_scope_is_still_a_function_check(self):
        file = validate("def f():\n    return [x for x in []]\n")
        assert file.ok(), messages(file)

    def test_nested_def(self):
        file = validate(
            "def f():\n"
            "    def g():\n"
            "        pass\n"
        )
        assert messages(file) == ["nested functions are not allowed. Move the function to the top level."]

    def test_load_inside_function(self):
        file = validate('def f():\n    load("//pkg:defs.bzl", "a")\n')
        assert messages(file) == ["load statement not at top level"]


class TestLoadOrdering:

    def test_load_after_statement(self):
        file = validate(
            'load("//a:a.bzl", "a")\n'
            "x = 1\n"
            'load("//b:b.bzl", "b")\n'
        )
        assert len(file.errors()) == 1
        error = file.errors()[0]
        assert error.message == (
            "load() statements must be called before any other statement. "
            "First non-load() statement appears at test.bzl:2:1. "
            "Use --incompatible_bzl_disallow_load_after_statement=false to temporarily "
            "disable this check."
        )
        assert error.location.line == 3

    def test_loads_first(self):
        file = validate(
            'load("//a:a.bzl", "a")\n'
            'load("//b:b.bzl", "b")\n'
            "x = 1\n"
        )
        assert file.ok(), messages(file)

    def test_docstring_may_precede_loads(self):
        file = validate(
            '"""Module docstring."""\n'
            'load("//a:a.bzl", "a")\n'
        )
        assert file.ok(), messages(file)

    def test_every_late_load_cites_the_first_statement(self):
        file = validate(
            'load("//a:a.bzl", "a")\n'
            "x = 1\n"
            "y = 2\n"
            'load("//b:b.bzl", "b")\n'
            'load("//c:c.bzl", "c")\n'
        )
        assert len(file.errors()) == 2
        assert all("appears at test.bzl:2:1." in m for m in messages(file))

    def test_check_disabled_by_flag(self):
        file = validate(
            "x = 1\n"
            'load("//b:b.bzl", "b")\n',
            incompatible_bzl_disallow_load_after_statement=False,
        )
        assert file.ok(), messages(file)

    def test_check_skipped_for_build_files(self):
        file = validate("x = 1\n" 'load("//b:b.bzl", "b")\n', is_build_file=True)
        assert file.ok(), messages(file)


class TestLoadBindings:

    def test_loaded_names_resolve(self):
        file = validate('load("//a:a.bzl", "a", b = "c")\nx = a + b\n')
        assert file.ok(), messages(file)

    def test_original_name_is_not_a_binding(self):
        file = validate('load("//a:a.bzl", b = "c")\nx = c\n')
        assert messages(file)[0].startswith("name 'c' is not defined")

    def test_duplicate_alias(self):
        file = validate('load("//a:a.bzl", a = "x", a = "y")\nb = a\n')
        dupes = [m for m in messages(file) if "more than once" in m]
        assert dupes == ["load statement defines 'a' more than once"]
        assert not any("not defined" in m for m in messages(file))


class TestAssignmentTargets:

    def test_call_target(self):
        file = validate("def f():\n    f() = 1\n")
        assert messages(file) == ["cannot assign to 'f()'"]

    def test_dot_target(self):
        file = validate("def f(a):\n    a.b = 1\n")
        assert messages(file) == ["cannot assign to 'a.b'"]

    def test_literal_inside_pattern(self):
        file = validate("def f():\n    a, 1 = 1, 2\n")
        assert messages(file) == ["cannot assign to '1'"]

    def test_index_target_is_visited(self):
        file = validate("d = {}\ndef f():\n    d[k] = 1\n")
        assert len(file.errors()) == 1
        assert messages(file)[0].startswith("name 'k' is not defined")

    def test_index_target_at_top_level(self):
        file = validate("d = {}\nd['k'] = 1\n")
        assert file.ok(), messages(file)

    def test_nested_pattern(self):
        file = validate("def f(p):\n    a, [b, c] = p\n    return a + b + c\n")
        assert file.ok(), messages(file)

    def test_augmented_assignment_to_tuple(self):
        file = validate("def f():\n    a, b = 1, 2\n    a, b += 1, 2\n")
        assert messages(file) == ["cannot perform augmented assignment on a list or tuple expression"]

    def test_augmented_assignment_to_list(self):
        file = validate("def f():\n    a = 1\n    [a] += [1]\n")
        assert messages(file) == ["cannot perform augmented assignment on a list or tuple expression"]

    def test_augmented_assignment_to_name(self):
        file = validate("def f():\n    n = 0\n    n += 1\n    return n\n")
        assert file.ok(), messages(file)

    def test_augmented_assignment_to_call(self):
        file = validate("def f():\n    f() += 1\n")
        assert messages(file) == ["cannot assign to 'f()'"]


class TestUndefinedNames:

    def test_not_defined(self):
        file = validate("x = y\n")
        assert messages(file) == ["name 'y' is not defined (did you mean 'x'?)"]
        assert file.errors()[0].location.line == 1
        assert file.errors()[0].location.column == 5

    def test_suggestion_from_local_scope(self):
        file = validate("def f(length):\n    return lenght\n")
        assert messages(file) == ["name 'lenght' is not defined (did you mean 'length'?)"]

    def test_suggestion_from_builtins(self):
        file = validate("x = lenn([])\n")
        assert messages(file) == ["name 'lenn' is not defined (did you mean 'len'?)"]

    def test_suggestion_only_considers_visible_names(self):
        file = validate(
            "def f():\n"
            "    counter = 1\n"
            "    return counter\n"
            "\n"
            "def g():\n"
            "    return countr\n"
        )
        assert len(file.errors()) == 1
        assert messages(file)[0].startswith("name 'countr' is not defined")
        assert "counter" not in messages(file)[0]

    def test_suggestion_is_stable(self):
        source = "def f(alpha, alpho):\n    return alphx\n"
        first = messages(validate(source))
        second = messages(validate(source))
        assert first == second
        assert first == ["name 'alphx' is not defined (did you mean 'alpha'?)"]

    def test_default_values_use_enclosing_scope(self):
        file = validate("def f(a, b = a):\n    pass\n")
        assert len(file.errors()) == 1
        assert messages(file)[0].startswith("name 'a' is not defined")

    def test_default_values_see_globals(self):
        file = validate("N = 1\ndef f(a, b = N, *args, **kwargs):\n    return a + b + len(args) + len(kwargs)\n")
        assert file.ok(), messages(file)

    def test_attribute_names_are_not_resolved(self):
        file = validate("x = struct().field\ny = foo.bar\n")
        assert len(file.errors()) == 1
        assert messages(file)[0].startswith("name 'foo' is not defined")

    def test_keyword_argument_names_are_not_resolved(self):
        file = validate("x = len(anything = 1)\n")
        assert file.ok(), messages(file)

    def test_error_placeholder(self):
        file = StarlarkFile([ExpressionStatement(Identifier("$error$", loc()))])
        validate_file(file, Environment.default())
        assert messages(file) == ["contains syntax error(s)"]

    def test_package_name_removed(self):
        file = validate("x = PACKAGE_NAME\n")
        assert messages(file) == [
            "The value 'PACKAGE_NAME' has been removed in favor of 'package_name()', "
            "please use the latter (https://docs.bazel.build/versions/master/skylark/lib/"
            "native.html#package_name). "
        ]

    def test_repository_name_removed(self):
        file = validate("x = REPOSITORY_NAME\n")
        assert messages(file)[0].startswith(
            "The value 'REPOSITORY_NAME' has been removed in favor of 'repository_name()'"
        )

    def test_invalid_identifier_message_helper(self):
        assert invalid_identifier_message("$error$", ["x"]) == "contains syntax error(s)"
        assert invalid_identifier_message("fo", ["foo"]) == "name 'fo' is not defined (did you mean 'foo'?)"
        assert invalid_identifier_message("zzz", []) == "name 'zzz' is not defined"


class TestRestrictedBindings:

    def _env(self, **flags):
        return Environment(
            globals={"len": None},
            guarded={
                "new_api": FlagGuardedValue.experimental("incompatible_restrict_string_escapes"),
                "old_api": FlagGuardedValue.deprecated("incompatible_bzl_disallow_load_after_statement"),
            },
            semantics=StarlarkSemantics(**flags),
        )

    def test_experimental_binding_hidden(self):
        file = validate("x = new_api\n", env=self._env())
        assert messages(file) == [
            "new_api is experimental and thus unavailable with the current flags. "
            "It may be enabled by setting --incompatible_restrict_string_escapes"
        ]

    def test_experimental_binding_enabled(self):
        file = validate("x = new_api\n", env=self._env(incompatible_restrict_string_escapes=True))
        assert file.ok(), messages(file)

    def test_deprecated_binding_hidden(self):
        file = validate("x = old_api\n", env=self._env())
        assert messages(file) == [
            "old_api is deprecated and will be removed soon. "
            "It may be temporarily re-enabled by setting "
            "--incompatible_bzl_disallow_load_after_statement=false"
        ]

    def test_deprecated_binding_still_enabled(self):
        file = validate(
            "x = old_api\n",
            env=self._env(incompatible_bzl_disallow_load_after_statement=False),
        )
        assert file.ok(), messages(file)


class TestComprehensions:

    def test_loop_variable_is_local(self):
        file = validate("x = [y for y in [1, 2] if y]\n")
        assert file.ok(), messages(file)
        ys = identifiers(file.statements, "y")
        assert len(ys) == 3
        assert all(file.scope_of(y) is Scope.LOCAL for y in ys)

    def test_loop_variable_does_not_leak(self):
        file = validate("x = [y for y in [1]]\nz = y\n")
        assert len(file.errors()) == 1
        assert messages(file)[0].startswith("name 'y' is not defined")

    def test_dict_comprehension(self):
        file = validate("d = {k: v for k, v in {}.items()}\n")
        assert file.ok(), messages(file)

    def test_later_clause_sees_earlier_variables(self):
        file = validate("p = [a + b for a in [1] for b in [a]]\n")
        assert file.ok(), messages(file)

    def test_all_clause_variables_declared_up_front(self):
        file = validate("x = [a for a in b for b in [[1]]]\n")
        assert file.ok(), messages(file)

    def test_body_undefined_name(self):
        file = validate("x = [q for y in []]\n")
        assert len(file.errors()) == 1
        assert messages(file)[0].startswith("name 'q' is not defined")

    def test_comprehension_in_function_sees_locals(self):
        file = validate("def f(n):\n    return [i * n for i in range(n)]\n")
        assert file.ok(), messages(file)


class TestScopeTags:

    SOURCE = (
        "x = 1\n"
        "def f(p):\n"
        "    y = p\n"
        "    return x + y + len([])\n"
    )

    def test_tags(self):
        file = validate(self.SOURCE)
        assert file.ok(), messages(file)
        xs = identifiers(file.statements, "x")
        assert [file.scope_of(i) for i in xs] == [Scope.MODULE, Scope.MODULE]
        ys = identifiers(file.statements, "y")
        assert [file.scope_of(i) for i in ys] == [Scope.LOCAL, Scope.LOCAL]
        (length,) = identifiers(file.statements, "len")
        assert file.scope_of(length) is Scope.UNIVERSE
        p_use = identifiers(file.statements, "p")[-1]
        assert file.scope_of(p_use) is Scope.LOCAL

    def test_top_level_for_variable_is_global(self):
        file = validate("for i in []:\n    pass\n")
        (i,) = identifiers(file.statements, "i")
        assert file.scope_of(i) is Scope.MODULE

    def test_unresolved_identifier_is_untagged(self):
        file = validate("x = y\n")
        (y,) = identifiers(file.statements, "y")
        assert file.scope_of(y) is None

    def test_build_file_mode_writes_no_tags(self):
        file = validate(self.SOURCE, is_build_file=True)
        assert file.ok(), messages(file)
        assert len(file.scopes) == 0

    def test_same_tree_in_both_modes(self):
        strict = validate(self.SOURCE)
        legacy_view = strict.sub_tree(0, len(strict.statements))
        validate_file(legacy_view, Environment.default(), is_build_file=True)
        assert len(legacy_view.scopes) == 0
        assert len(strict.scopes) > 0


class TestErrorAccumulation:

    def test_diagnostics_do_not_stop_traversal(self):
        file = validate("return 1\nbreak\nx = y\n")
        assert messages(file) == [
            "return statements must be inside a function",
            "break statement must be inside a for loop",
            "name 'y' is not defined (did you mean 'x'?)",
        ]

    def test_collection_errors_come_first(self):
        file = validate("z = w\nx = 1\nx = 2\n")
        assert len(file.errors()) == 2
        assert "read only" in file.errors()[0].message
        assert file.errors()[1].message.startswith("name 'w' is not defined")

    def test_parse_errors_are_kept(self):
        file = validate("x = (\n")
        assert not file.ok()
        assert file.statements == []

    def test_unbalanced_chain_is_an_internal_error(self, monkeypatch):
        monkeypatch.setattr(ScopeChain, "close_block", lambda self: self.current)
        with pytest.raises(StarlarkImplementationError):
            validate("x = 1\n")

    def test_validation_environment_owns_fresh_state(self):
        file = validate("x = 1\n")
        venv = ValidationEnvironment(file.reporter, Environment.default(), file.scopes)
        assert venv.loop_count == 0
        assert venv.chain.is_balanced()


class TestStringEscapes:

    def test_invalid_escape_ignored_by_default(self):
        file = validate('x = "a\\d"\n')
        assert file.ok(), messages(file)

    def test_invalid_escape_reported_with_flag(self):
        file = validate('x = "a\\d"\n', incompatible_restrict_string_escapes=True)
        assert messages(file) == [
            "invalid escape sequence: \\d. You can enable unknown escape sequences by passing "
            "the flag --incompatible_restrict_string_escapes=false"
        ]

    def test_escape_events_added_once(self):
        file = validate('x = "\\q"\n', incompatible_restrict_string_escapes=True)
        validate_file(file, Environment.default(StarlarkSemantics(incompatible_restrict_string_escapes=True)))
        assert sum("invalid escape" in m for m in messages(file)) == 1
