"""
test_consequence.py

Tests for the core pipeline: tokens, shunting-yard conversion, postfix
evaluation, canonical CNF extraction and consequence enumeration.
"""

import os
import sys
from itertools import product

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from consequence_core import (
    FALSE, TRUE, POSITIVE, NEGATED,
    is_number, is_variable, is_operation, is_unary_operation, is_binary_operation,
    is_opening_par, is_closing_par, priority,
    string_to_sequence, get_variables, sequence_to_string,
    infix_to_postfix, evaluate, substitute_values, make_assignment,
    iter_assignments, truth_table, extract_canonical_cnf,
    Clause, ClauseSet, Consequence, enumerate_consequences, format_consequences,
    analyze_formula, evaluate_formula, process_formulas, SAMPLE_FORMULAS,
    FormulaError, UnknownTokenError, MissingOpenParenError, UnclosedParenError,
    MalformedExpressionError, TooManyVariablesError, TooManyClausesError,
    InvalidAssignmentError,
    get_max_variables, set_max_variables, get_max_clauses, set_max_clauses, reset_limits,
    DEFAULT_MAX_VARIABLES, DEFAULT_MAX_CLAUSES,
)


FORMULAS = [
    "A|B",
    "A>B",
    "(A&B)>A",
    "A|B&C",
    "(A|B)&C",
    "A>B>C",
    "A>(B>C)",
    "A~B>C",
    "!A&B|C",
    "!(A&B)~(!A|!B)",
    "!(!A)|B",
    "1&A|0",
    "!(A>B)&!C~A",
    "p>(q|(r&s))",
]


@pytest.fixture(autouse=True)
def default_limits():
    reset_limits()
    yield
    reset_limits()


# Recursive-descent evaluator used as an independent reference.
# Lowest to highest priority; all binary operations associate to the left.
BINARY_LEVELS = [
    ('~', lambda a, b: a == b),
    ('>', lambda a, b: (not a) or b),
    ('|', lambda a, b: a or b),
    ('&', lambda a, b: a and b),
]


def reference_eval(text, env):
    tokens = [c.upper() for c in text if not c.isspace()]
    pos = [0]

    def peek():
        return tokens[pos[0]] if pos[0] < len(tokens) else None

    def binary(level):
        if level == len(BINARY_LEVELS):
            return unary()
        op, fn = BINARY_LEVELS[level]
        left = binary(level + 1)
        while peek() == op:
            pos[0] += 1
            left = fn(left, binary(level + 1))
        return left

    def unary():
        t = peek()
        pos[0] += 1
        if t == '!':
            return not unary()
        if t == '(':
            value = binary(0)
            assert peek() == ')'
            pos[0] += 1
            return value
        if t in ('0', '1'):
            return t == '1'
        return env[t]

    value = binary(0)
    assert pos[0] == len(tokens)
    return value


def all_envs(variables):
    for bits in product([0, 1], repeat=len(variables)):
        yield dict(zip(variables, bits))


def to_assignment(env):
    return {v: str(b) for v, b in env.items()}


# 1. Token classification

def test_classifier():
    assert is_number('0') and is_number('1')
    assert not is_number('2') and not is_number('A')
    assert is_variable('A') and is_variable('z')
    assert not is_variable('1') and not is_variable('#') and not is_variable('(')
    assert is_unary_operation('!') and not is_binary_operation('!')
    for op in '&|>~':
        assert is_binary_operation(op) and is_operation(op)
    assert is_opening_par('(') and is_closing_par(')')
    for c in '#$%.,':
        assert not (is_number(c) or is_variable(c) or is_operation(c)
                    or is_opening_par(c) or is_closing_par(c))


def test_priority_order():
    assert priority('!') > priority('&') > priority('|') > priority('>') > priority('~')
    assert [priority(op) for op in '!&|>~'] == [5, 4, 3, 2, 1]


def test_priority_of_non_operation_is_a_programming_error():
    with pytest.raises(AssertionError):
        priority('A')
    with pytest.raises(AssertionError):
        priority('(')


# 2. Lexing

def test_string_to_sequence_strips_spaces_and_upper_cases():
    assert string_to_sequence(" a |\tb\n") == ['A', '|', 'B']
    assert string_to_sequence("p>(q#1)") == ['P', '>', '(', 'Q', '#', '1', ')']


def test_get_variables_is_sorted_and_distinct():
    assert get_variables(string_to_sequence("c&a|b&A")) == ['A', 'B', 'C']
    assert get_variables(string_to_sequence("1&0")) == []


# 3. Shunting-yard conversion

@pytest.mark.parametrize("infix, postfix", [
    ("A|B&C", "ABC&|"),
    ("(A|B)&C", "AB|C&"),
    ("A>B>C", "AB>C>"),
    ("A>(B>C)", "ABC>>"),
    ("!A&B", "A!B&"),
    ("A&!B", "AB!&"),
    ("!!A", "!A!"),
    ("!(!A)", "A!!"),
    ("A~B>C", "ABC>~"),
    ("p>(q|(r&s))", "PQRS&|>"),
])
def test_infix_to_postfix(infix, postfix):
    assert sequence_to_string(infix_to_postfix(string_to_sequence(infix))) == postfix


def test_unclosed_parenthesis():
    with pytest.raises(UnclosedParenError) as info:
        infix_to_postfix(string_to_sequence("(A&B"))
    assert info.value.kind == 'UnclosedParen'


def test_missing_opening_parenthesis():
    with pytest.raises(MissingOpenParenError) as info:
        infix_to_postfix(string_to_sequence("A&B)"))
    assert info.value.kind == 'MissingOpenParen'
    assert info.value.position == 3


def test_unknown_token():
    with pytest.raises(UnknownTokenError) as info:
        infix_to_postfix(string_to_sequence("A#B"))
    assert info.value.kind == 'UnknownToken'
    assert info.value.char == '#'
    assert info.value.position == 1
    assert "'#'" in str(info.value)


def test_errors_are_formula_errors():
    for text in ["(A&B", "A&B)", "A#B", "A&"]:
        with pytest.raises(FormulaError) as info:
            analyze_formula(text)
        assert isinstance(info.value, ValueError)


def test_converter_does_not_check_operands():
    # Arity problems only surface during evaluation
    assert infix_to_postfix(string_to_sequence("A&")) == ['A', '&']
    with pytest.raises(MalformedExpressionError):
        analyze_formula("A&")


# 4. Postfix evaluation

@pytest.mark.parametrize("op, table", [
    ('&', {(0, 0): 0, (0, 1): 0, (1, 0): 0, (1, 1): 1}),
    ('|', {(0, 0): 0, (0, 1): 1, (1, 0): 1, (1, 1): 1}),
    ('>', {(0, 0): 1, (0, 1): 1, (1, 0): 0, (1, 1): 1}),
    ('~', {(0, 0): 1, (0, 1): 0, (1, 0): 0, (1, 1): 1}),
])
def test_binary_truth_tables(op, table):
    for (a, b), expected in table.items():
        assert evaluate([str(a), str(b), op]) == str(expected)


def test_negation():
    assert evaluate(['0', '!']) == TRUE
    assert evaluate(['1', '!']) == FALSE
    assert evaluate(['1', '!', '!']) == TRUE


@pytest.mark.parametrize("postfix", [
    [],
    ['&'],
    ['1', '&'],
    ['!'],
    ['1', '1'],
    ['1', '0', '|', '1'],
    ['A'],
    ['1', '('],
])
def test_malformed_expressions(postfix):
    with pytest.raises(MalformedExpressionError) as info:
        evaluate(postfix)
    assert info.value.kind == 'MalformedExpression'


def test_malformed_expression_context():
    with pytest.raises(MalformedExpressionError) as info:
        evaluate(['1', '&'])
    assert info.value.token == '&'
    assert (info.value.expected, info.value.found) == (2, 1)

    with pytest.raises(MalformedExpressionError) as info:
        evaluate(['1', '0'])
    assert (info.value.expected, info.value.found) == (1, 2)


def test_operand_after_operand_is_malformed():
    with pytest.raises(MalformedExpressionError):
        analyze_formula("A!B")


def test_substitute_values_keeps_order():
    postfix = infix_to_postfix(string_to_sequence("A>B&A"))
    assert substitute_values(postfix, {'A': '1', 'B': '0'}) == ['1', '0', '1', '&', '>']
    with pytest.raises(InvalidAssignmentError):
        substitute_values(postfix, {'A': '1'})


@pytest.mark.parametrize("text", FORMULAS)
def test_matches_reference_evaluator(text):
    variables = get_variables(string_to_sequence(text))
    for env in all_envs(variables):
        expected = TRUE if reference_eval(text, env) else FALSE
        assert evaluate_formula(text, env) == expected, (text, env)


def test_precedence_and_over_or():
    differs = False
    for env in all_envs(['A', 'B', 'C']):
        assert evaluate_formula("A|B&C", env) == evaluate_formula("A|(B&C)", env)
        if evaluate_formula("A|B&C", env) != evaluate_formula("(A|B)&C", env):
            differs = True
    assert differs


def test_implication_associates_left():
    env = {'A': 0, 'B': 0, 'C': 0}
    # (A>B)>C and A>(B>C) disagree here
    assert evaluate_formula("(A>B)>C", env) != evaluate_formula("A>(B>C)", env)
    assert evaluate_formula("A>B>C", env) == evaluate_formula("(A>B)>C", env) == FALSE
    for env in all_envs(['A', 'B', 'C']):
        assert evaluate_formula("A>B>C", env) == evaluate_formula("(A>B)>C", env)


def test_double_negation_needs_parentheses():
    with pytest.raises(MalformedExpressionError) as info:
        analyze_formula("!!A")
    assert info.value.token == '!'
    with pytest.raises(MalformedExpressionError):
        evaluate_formula("!!A", {'A': 1})
    for env in all_envs(['A']):
        assert evaluate_formula("!(!A)", env) == str(env['A'])


def test_make_assignment():
    assert make_assignment(['A', 'B'], {'a': 1, 'B': True}) == {'A': '1', 'B': '1'}
    assert make_assignment(['A'], {'A': ' 0 '}) == {'A': '0'}
    with pytest.raises(InvalidAssignmentError) as info:
        make_assignment(['A', 'B'], {'A': 1})
    assert info.value.variable == 'B'
    with pytest.raises(InvalidAssignmentError) as info:
        make_assignment(['A'], {'A': 2})
    assert info.value.value == 2
    with pytest.raises(InvalidAssignmentError):
        make_assignment(['A'], {'A': 'yes'})


def test_evaluate_formula_a_implies_b():
    assert evaluate_formula("A>B", {'A': 1, 'B': 0}) == FALSE
    for a, b in [(0, 0), (0, 1), (1, 1)]:
        assert evaluate_formula("A>B", {'A': a, 'B': b}) == TRUE


# 5. Truth table and canonical CNF

def test_iter_assignments_most_significant_first():
    rows = list(iter_assignments(['A', 'B']))
    assert [bits for _, bits, _ in rows] == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert rows[2][2] == {'A': '1', 'B': '0'}
    assert list(iter_assignments([])) == [(0, (), {})]


def test_truth_table():
    postfix = infix_to_postfix(string_to_sequence("A>B"))
    rows = truth_table(postfix, ['A', 'B'])
    assert [row.value for row in rows] == ['1', '1', '0', '1']
    assert rows[2].bits == (1, 0)


def test_cnf_of_a_or_b():
    clause_set = analyze_formula("A|B").clause_set
    assert clause_set.variables == ('A', 'B')
    assert len(clause_set) == 1
    assert clause_set[0].signs == (POSITIVE, POSITIVE)
    assert clause_set[0].to_string() == "A | B"


def test_cnf_of_a_implies_b():
    clause_set = analyze_formula("A>B").clause_set
    assert len(clause_set) == 1
    assert clause_set[0].signs == (NEGATED, POSITIVE)
    assert clause_set[0].to_string() == "!A | B"
    assert clause_set.to_string() == "(!A | B)"


def test_cnf_of_sample_formula():
    clause_set = analyze_formula("p>(q|(r&s))").clause_set
    assert [c.to_string() for c in clause_set] == [
        "!P | Q | R | S",
        "!P | Q | R | !S",
        "!P | Q | !R | S",
    ]


def test_clause_from_bits_negates_true_variables():
    clause = Clause.from_bits(['A', 'B', 'C'], (1, 0, 1))
    assert clause.signs == (NEGATED, POSITIVE, NEGATED)
    assert clause.literals() == ['!A', 'B', '!C']
    assert clause.evaluate({'A': '1', 'B': '0', 'C': '1'}) == FALSE
    assert clause.evaluate({'A': '1', 'B': '1', 'C': '1'}) == TRUE


def test_clause_validation():
    with pytest.raises(ValueError):
        Clause(['A', 'B'], [POSITIVE])
    with pytest.raises(ValueError):
        Clause(['A'], ['?'])


@pytest.mark.parametrize("text", FORMULAS)
def test_cnf_is_equivalent_to_formula(text):
    analysis = analyze_formula(text)
    for _, _, assignment in iter_assignments(analysis.variables):
        original = evaluate(substitute_values(analysis.postfix, assignment))
        assert analysis.clause_set.evaluate(assignment) == original


def test_one_clause_per_false_row():
    analysis = analyze_formula("A&B&C")
    assert len(analysis.clause_set) == 7
    assert len(set(analysis.clause_set)) == 7


def test_tautology_has_no_clauses():
    analysis = analyze_formula("(A&B)>A")
    assert len(analysis.clause_set) == 0
    assert analysis.clause_set.to_string() == ""


def test_constant_formulas():
    false_analysis = analyze_formula("0")
    assert false_analysis.variables == []
    assert len(false_analysis.clause_set) == 1
    assert false_analysis.clause_set[0].to_string() == "0"
    assert [c.to_string() for c in false_analysis.consequences] == ["", "(0)"]

    true_analysis = analyze_formula("1")
    assert len(true_analysis.clause_set) == 0
    assert len(true_analysis.consequences) == 1


def test_extraction_keeps_given_variable_order():
    postfix = infix_to_postfix(string_to_sequence("A>B"))
    clause_set = extract_canonical_cnf(postfix, ['B', 'A'])
    assert clause_set.variables == ('B', 'A')
    assert clause_set[0].to_string() == "B | !A"


def test_extraction_needs_every_variable():
    postfix = infix_to_postfix(string_to_sequence("A>B"))
    with pytest.raises(InvalidAssignmentError):
        extract_canonical_cnf(postfix, ['A'])


# 6. Consequence enumeration

def test_consequences_of_a_or_b():
    consequences = analyze_formula("A|B").consequences
    assert len(consequences) == 2
    assert consequences[0].is_trivial
    assert [c.to_string() for c in consequences] == ["", "(A | B)"]


def test_enumeration_order_clause_zero_is_most_significant():
    analysis = analyze_formula("p>(q|(r&s))")
    consequences = analysis.consequences
    clauses = analysis.clause_set
    assert len(consequences) == 8
    assert [c.selector for c in consequences] == [tuple(bits) for bits in product([0, 1], repeat=3)]
    assert [c.index for c in consequences] == list(range(8))
    assert consequences[1].clauses == (clauses[2],)
    assert consequences[4].clauses == (clauses[0],)
    assert consequences[7].clauses == tuple(clauses)
    assert consequences[3].to_string() == "(!P | Q | R | !S)&(!P | Q | !R | S)"


def test_no_clauses_give_one_empty_conjunction():
    consequences = enumerate_consequences(ClauseSet(['A'], []))
    assert len(consequences) == 1
    assert consequences[0].is_trivial
    assert consequences[0].selector == ()
    assert consequences[0].evaluate({'A': '0'}) == TRUE


@pytest.mark.parametrize("text", FORMULAS)
def test_every_subset_is_a_consequence(text):
    analysis = analyze_formula(text)
    k = len(analysis.clause_set)
    assert len(analysis.consequences) == 2 ** k
    for _, _, assignment in iter_assignments(analysis.variables):
        if evaluate(substitute_values(analysis.postfix, assignment)) == TRUE:
            for consequence in analysis.consequences:
                assert consequence.evaluate(assignment) == TRUE


def test_rendered_consequences_parse_back():
    analysis = analyze_formula("A~B")
    for consequence in analysis.consequences:
        if consequence.is_trivial:
            continue
        for _, _, assignment in iter_assignments(analysis.variables):
            assert evaluate_formula(consequence.to_string(), assignment) == consequence.evaluate(assignment)


def test_enumeration_is_repeatable():
    clause_set = analyze_formula("A&B").clause_set
    first = enumerate_consequences(clause_set)
    second = enumerate_consequences(clause_set)
    assert first == second
    assert len(first) == 8


def test_format_consequences():
    assert format_consequences(analyze_formula("A|B").consequences) == "(A | B)"
    assert format_consequences(analyze_formula("A>B").consequences) == "(!A | B)"
    assert format_consequences(analyze_formula("(A&B)>A").consequences) == ""
    listing = format_consequences(analyze_formula("A&B").consequences)
    # 12 clause occurrences over the 7 non-trivial subsets of 3 clauses
    assert listing.count("(") == 12
    assert not listing.startswith("&") and not listing.endswith("&")


def test_consequence_selector_must_match():
    clause_set = analyze_formula("A|B").clause_set
    with pytest.raises(ValueError):
        Consequence((1, 0), clause_set)


def test_entails():
    consequences = analyze_formula("A&B").consequences
    strongest = consequences[-1]
    for consequence in consequences:
        assert strongest.entails(consequence)
        assert consequence.entails(consequences[0])
    assert not consequences[1].entails(consequences[2])


# 7. Limits

def test_limit_defaults():
    assert get_max_variables() == DEFAULT_MAX_VARIABLES
    assert get_max_clauses() == DEFAULT_MAX_CLAUSES


def test_too_many_variables():
    set_max_variables(2)
    with pytest.raises(TooManyVariablesError) as info:
        analyze_formula("A&B&C")
    assert info.value.kind == 'TooManyVariables'
    assert (info.value.count, info.value.limit) == (3, 2)


def test_too_many_clauses():
    set_max_clauses(2)
    with pytest.raises(TooManyClausesError) as info:
        analyze_formula("A&B")
    assert info.value.kind == 'TooManyClauses'
    assert (info.value.count, info.value.limit) == (3, 2)


def test_bad_limits_are_rejected():
    for bad in [0, -1, 2.5, True, "3"]:
        with pytest.raises(ValueError):
            set_max_variables(bad)
        with pytest.raises(ValueError):
            set_max_clauses(bad)


# 8. Pipeline

def test_analysis():
    analysis = analyze_formula("p>(q|(r&s))")
    assert analysis.postfix_string() == "PQRS&|>"
    assert analysis.variables == ['P', 'Q', 'R', 'S']
    assert analysis.evaluate({'p': 1, 'q': 0, 'r': 1, 's': 0}) == FALSE
    assert analysis.evaluate({'p': 1, 'q': 0, 'r': 1, 's': 1}) == TRUE


def test_process_formulas_isolates_failures():
    results = process_formulas(["A|B", "(A&B", "A#B", "A>B"])
    assert [r.ok for r in results] == [True, False, False, True]
    assert results[1].error.kind == 'UnclosedParen'
    assert results[2].error.kind == 'UnknownToken'
    assert results[3].analysis.listing() == "(!A | B)"


def test_sample_formulas_all_succeed():
    results = process_formulas(SAMPLE_FORMULAS)
    assert all(r.ok for r in results)
    assert [len(r.analysis.consequences) for r in results] == [8, 2, 2, 1]


def test_errors_are_deterministic():
    for _ in range(2):
        results = process_formulas(["A&B)"])
        assert results[0].error.kind == 'MissingOpenParen'
