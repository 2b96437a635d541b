"""
consequence_core.py

Core data structures and operations for consequence formulas.

A formula is written in infix notation over binary variables (A-Z, case is
ignored) and the constants 0 and 1, using the connectives:
- '!' negation (unary, prefix)
- '&' conjunction
- '|' disjunction
- '>' implication
- '~' biconditional

Processing one formula runs left to right:
- Lexing: raw text -> token sequence
- Shunting-yard: token sequence -> postfix (reverse Polish) sequence
- Truth table: the postfix sequence is evaluated under every assignment
- Canonical CNF: one clause (maxterm) for every falsifying assignment
- Consequences: the conjunction of every subset of the canonical clauses

Every conjunction of canonical clauses is entailed by the original formula,
so the enumeration lists 2^k consequence formulas for k clauses.
"""

import sys
import networkx as nx
from tqdm import tqdm


# ============================================================================
# SECTION 0: CONFIGURATION
# ============================================================================

# 6 variables give 64 truth-table rows, i.e. at most 64 canonical clauses.
DEFAULT_MAX_VARIABLES = 6
# 16 clauses give 65536 consequence formulas.
DEFAULT_MAX_CLAUSES = 16

_max_variables = DEFAULT_MAX_VARIABLES
_max_clauses = DEFAULT_MAX_CLAUSES


def _check_limit(limit):
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValueError(f"Limit must be a positive integer, got {limit!r}")
    return limit


def get_max_variables():
    """Get the largest number of distinct variables a formula may use."""
    return _max_variables


def set_max_variables(limit):
    """Set the largest number of distinct variables a formula may use."""
    global _max_variables
    _max_variables = _check_limit(limit)


def get_max_clauses():
    """Get the largest canonical clause set that may be enumerated."""
    return _max_clauses


def set_max_clauses(limit):
    """Set the largest canonical clause set that may be enumerated."""
    global _max_clauses
    _max_clauses = _check_limit(limit)


def reset_limits():
    """Reset both limits to their defaults."""
    global _max_variables, _max_clauses
    _max_variables = DEFAULT_MAX_VARIABLES
    _max_clauses = DEFAULT_MAX_CLAUSES


# ============================================================================
# SECTION 1: TOKENS AND CLASSIFICATION
# ============================================================================

FALSE = '0'
TRUE = '1'

NOT = '!'
AND = '&'
OR = '|'
IMPLIES = '>'
IFF = '~'

OPENING_PAR = '('
CLOSING_PAR = ')'

UNARY_OPERATIONS = frozenset([NOT])
BINARY_OPERATIONS = frozenset([AND, OR, IMPLIES, IFF])

# Higher number binds tighter
PRIORITY = {
    NOT: 5,
    AND: 4,
    OR: 3,
    IMPLIES: 2,
    IFF: 1,
}


def is_number(t):
    """Is the token a constant (0 or 1)?"""
    return t == FALSE or t == TRUE


def is_variable(t):
    """Is the token a variable letter (either case)?"""
    return len(t) == 1 and ('A' <= t <= 'Z' or 'a' <= t <= 'z')


def is_unary_operation(t):
    return t in UNARY_OPERATIONS


def is_binary_operation(t):
    return t in BINARY_OPERATIONS


def is_operation(t):
    return is_unary_operation(t) or is_binary_operation(t)


def is_opening_par(t):
    return t == OPENING_PAR


def is_closing_par(t):
    return t == CLOSING_PAR


def priority(op):
    """
    Return the priority of an operation (the larger, the tighter it binds).

    Calling this on anything other than an operation token is a programming
    error and fails the assertion.
    """
    assert is_operation(op), f"Not an operation: {op!r}"
    return PRIORITY[op]


# ============================================================================
# SECTION 2: ERRORS
# ============================================================================

class FormulaError(ValueError):
    """
    Base class for every error detected while processing one formula.

    Subclasses set `kind` to a short tag so that callers can branch on it,
    and keep the offending details as attributes rather than only in the
    message text.
    """

    kind = 'FormulaError'


class UnknownTokenError(FormulaError):
    """The input contains a character that is not a valid token."""

    kind = 'UnknownToken'

    def __init__(self, char, position=None):
        self.char = char
        self.position = position
        super().__init__(f"Unknown character '{char}'!")


class MissingOpenParenError(FormulaError):
    """A closing parenthesis has no matching opening parenthesis."""

    kind = 'MissingOpenParen'

    def __init__(self, position=None):
        self.position = position
        super().__init__("The opening parenthesis is missing!")


class UnclosedParenError(FormulaError):
    """An opening parenthesis is never closed."""

    kind = 'UnclosedParen'

    def __init__(self):
        super().__init__("An unclosed parenthesis!")


class MalformedExpressionError(FormulaError):
    """
    The postfix sequence cannot be evaluated.

    Attributes:
        token: the token being processed when evaluation failed (None when
            the failure was the final stack size)
        expected: number of stack entries required
        found: number of stack entries available
    """

    kind = 'MalformedExpression'

    def __init__(self, token=None, expected=None, found=None):
        self.token = token
        self.expected = expected
        self.found = found
        details = []
        if token is not None:
            details.append(f"at '{token}'")
        if expected is not None:
            details.append(f"expected {expected} operand(s), found {found}")
        message = "Incorrect expression!"
        if details:
            message += " (" + ", ".join(details) + ")"
        super().__init__(message)


class TooManyVariablesError(FormulaError):
    kind = 'TooManyVariables'

    def __init__(self, count, limit):
        self.count = count
        self.limit = limit
        super().__init__(f"Too many variables: {count} (at most {limit} allowed)")


class TooManyClausesError(FormulaError):
    kind = 'TooManyClauses'

    def __init__(self, count, limit):
        self.count = count
        self.limit = limit
        super().__init__(f"Too many clauses to enumerate: {count} (at most {limit} allowed)")


class InvalidAssignmentError(FormulaError):
    """A variable has no value, or its value is not 0/1."""

    kind = 'InvalidAssignment'

    def __init__(self, variable, value=None):
        self.variable = variable
        self.value = value
        if value is None:
            message = f"No value given for variable '{variable}'"
        else:
            message = f"Value of '{variable}' must be 0 or 1, got {value!r}"
        super().__init__(message)


# ============================================================================
# SECTION 3: LEXING
# ============================================================================

def is_space(c):
    """Whitespace and control characters are dropped by the lexer."""
    return c <= ' '


def string_to_sequence(text):
    """
    Turn formula text into a token sequence.

    Whitespace is removed and letters are upper-cased; every other character
    passes through unchanged, so unknown characters are left for the
    converter to reject.

    Args:
        text: formula string, e.g. "p > (q | r)"

    Returns:
        list of one-character tokens
    """
    return [c.upper() if is_variable(c) else c for c in text if not is_space(c)]


def get_variables(sequence):
    """
    Return the distinct variables of a token sequence in ascending order.

    This order fixes the column order of the truth table: variable j is
    assigned by bit j counted from the most significant end.
    """
    return sorted(set(t for t in sequence if is_variable(t)))


def sequence_to_string(sequence):
    return "".join(sequence)


# ============================================================================
# SECTION 4: INFIX TO POSTFIX (SHUNTING-YARD)
# ============================================================================

def infix_to_postfix(tokens):
    """
    Convert an infix token sequence to postfix order (Dijkstra's shunting-yard).

    - Constants and variables go straight to the output.
    - An operation, negation included, pops every operation on top of the
      stack whose priority is greater than or equal to its own, then is
      pushed. Equal priorities therefore associate to the left: A>B>C is
      (A>B)>C. The same rule makes !!A come out as !A!, which evaluate()
      rejects; double negation is written !(!A).
    - Parentheses group; mismatches are reported.

    Operand counts are not checked here; that is left to evaluate().

    Args:
        tokens: token sequence from string_to_sequence()

    Returns:
        list of tokens in postfix order

    Raises:
        UnknownTokenError: a token is not a constant, variable, operation or
            parenthesis
        MissingOpenParenError: a ')' has no matching '('
        UnclosedParenError: a '(' is never closed
    """
    output = []
    stack = []

    for position, t in enumerate(tokens):
        if is_number(t) or is_variable(t):
            output.append(t)
        elif is_operation(t):
            while stack and is_operation(stack[-1]) and priority(t) <= priority(stack[-1]):
                output.append(stack.pop())
            stack.append(t)
        elif is_opening_par(t):
            stack.append(t)
        elif is_closing_par(t):
            while stack and not is_opening_par(stack[-1]):
                output.append(stack.pop())
            if not stack:
                raise MissingOpenParenError(position)
            # Discard the '(' itself
            stack.pop()
        else:
            raise UnknownTokenError(t, position)

    while stack:
        t = stack.pop()
        if is_opening_par(t):
            raise UnclosedParenError()
        output.append(t)

    return output


# ============================================================================
# SECTION 5: POSTFIX EVALUATION
# ============================================================================

def logic_value(t):
    """Get the bool value of a constant token."""
    assert is_number(t), f"Not a constant: {t!r}"
    return t == TRUE


def bool_to_token(x):
    return TRUE if x else FALSE


def eval_binary_operation(a, op, b):
    """Apply a binary operation to two constant tokens, returning a constant token."""
    assert is_binary_operation(op), f"Not a binary operation: {op!r}"
    left = logic_value(a)
    right = logic_value(b)
    if op == AND:
        res = left and right
    elif op == OR:
        res = left or right
    elif op == IMPLIES:
        res = not left or right
    else:
        res = (not left or right) and (not right or left)
    return bool_to_token(res)


def eval_unary_operation(op, a):
    assert is_unary_operation(op), f"Not a unary operation: {op!r}"
    return bool_to_token(not logic_value(a))


def eval_operation_using_stack(op, stack):
    """
    Apply one operation to the working stack, pushing the result.

    Binary operations pop the right operand first, then the left one.

    Raises:
        MalformedExpressionError: too few operands, or an operand that is
            not a constant
    """
    if is_binary_operation(op):
        if len(stack) < 2:
            raise MalformedExpressionError(op, expected=2, found=len(stack))
        b = stack.pop()
        a = stack.pop()
        if not is_number(a) or not is_number(b):
            raise MalformedExpressionError(op)
        stack.append(eval_binary_operation(a, op, b))
    elif is_unary_operation(op):
        if not stack:
            raise MalformedExpressionError(op, expected=1, found=0)
        a = stack.pop()
        if not is_number(a):
            raise MalformedExpressionError(op)
        stack.append(eval_unary_operation(op, a))
    else:
        raise MalformedExpressionError(op)


def evaluate(postfix):
    """
    Evaluate a postfix sequence whose operands are all constants.

    Each call owns its working stack, so evaluation has no side effects and
    can be repeated freely (once per truth-table row).

    Args:
        postfix: postfix token sequence of constants and operations

    Returns:
        '0' or '1'

    Raises:
        MalformedExpressionError: on any operand shortage, any token that is
            neither a constant nor an operation, or a final stack holding
            other than exactly one value
    """
    stack = []
    for t in postfix:
        if is_number(t):
            stack.append(t)
        elif is_operation(t):
            eval_operation_using_stack(t, stack)
        else:
            raise MalformedExpressionError(t)

    if len(stack) != 1:
        raise MalformedExpressionError(expected=1, found=len(stack))
    return stack[0]


def substitute_values(postfix, assignment):
    """
    Replace every variable of a sequence by its value, keeping the order.

    Args:
        postfix: token sequence
        assignment: dict mapping variable -> '0' or '1'

    Raises:
        InvalidAssignmentError: a variable of the sequence has no value
    """
    result = []
    for t in postfix:
        if is_variable(t):
            if t not in assignment:
                raise InvalidAssignmentError(t)
            result.append(assignment[t])
        else:
            result.append(t)
    return result


def make_assignment(variables, values):
    """
    Build an assignment for `variables` from user supplied values.

    Args:
        variables: ordered variable tokens
        values: dict mapping variable name (either case) to 0/1 given as
            int, bool or '0'/'1'

    Returns:
        dict mapping variable -> '0' or '1'

    Raises:
        InvalidAssignmentError: a variable is missing or has a bad value
    """
    normalized = {str(name).upper(): value for name, value in values.items()}
    assignment = {}
    for v in variables:
        if v not in normalized:
            raise InvalidAssignmentError(v)
        value = normalized[v]
        if isinstance(value, str):
            token = value.strip()
        elif isinstance(value, (bool, int)):
            token = str(int(value))
        else:
            token = None
        if token is None or not is_number(token):
            raise InvalidAssignmentError(v, value)
        assignment[v] = token
    return assignment


# ============================================================================
# SECTION 6: TRUTH TABLE AND CANONICAL CNF
# ============================================================================

# Literal signs inside a clause
POSITIVE = '+'
NEGATED = '-'


def check_variable_limit(variables):
    limit = get_max_variables()
    if len(variables) > limit:
        raise TooManyVariablesError(len(variables), limit)


def iter_assignments(variables):
    """
    Yield every assignment of `variables` in truth-table order.

    Row i assigns variable j the bit j of i counted from the most
    significant end, so the first variable changes slowest.

    Yields:
        (row, bits, assignment) with bits a tuple of 0/1 ints and assignment
        a dict mapping variable -> '0' or '1'
    """
    n = len(variables)
    for row in range(1 << n):
        bits = tuple((row >> (n - 1 - j)) & 1 for j in range(n))
        assignment = {v: bool_to_token(b) for v, b in zip(variables, bits)}
        yield row, bits, assignment


class TruthTableRow:
    """One row of a truth table: the assignment bits and the formula value."""

    def __init__(self, row, bits, value):
        self.row = row
        self.bits = bits
        self.value = value

    def __repr__(self):
        bits = "".join(str(b) for b in self.bits)
        return f"TruthTableRow({self.row}: {bits} -> {self.value})"

    def __eq__(self, other):
        if not isinstance(other, TruthTableRow):
            return False
        return (self.row, self.bits, self.value) == (other.row, other.bits, other.value)


def truth_table(postfix, variables, verbose=False):
    """
    Evaluate a postfix formula under every assignment of its variables.

    Args:
        postfix: postfix token sequence
        variables: ordered variable set (see get_variables)
        verbose: If True, show a progress bar on stderr

    Returns:
        list of TruthTableRow, in row order
    """
    check_variable_limit(variables)
    rows = []
    for row, bits, assignment in tqdm(iter_assignments(variables), total=1 << len(variables),
                                      desc="Truth table", disable=not verbose):
        rows.append(TruthTableRow(row, bits, evaluate(substitute_values(postfix, assignment))))
    return rows


class Clause:
    """
    A disjunctive clause (maxterm) of a canonical CNF.

    Stored as a sign vector with one entry per variable, in variable-set
    order; each entry is POSITIVE or NEGATED.
    """

    def __init__(self, variables, signs):
        if len(variables) != len(signs):
            raise ValueError(f"Clause needs one sign per variable: {len(variables)} variables, "
                             f"{len(signs)} signs")
        for s in signs:
            if s not in (POSITIVE, NEGATED):
                raise ValueError(f"Unknown literal sign: {s!r}")
        self.variables = tuple(variables)
        self.signs = tuple(signs)

    @classmethod
    def from_bits(cls, variables, bits):
        """
        Build the maxterm of a falsifying assignment.

        A variable that was 1 in the assignment appears negated.
        """
        return cls(variables, [NEGATED if b else POSITIVE for b in bits])

    def __repr__(self):
        return f"Clause({self.to_string()})"

    def __str__(self):
        return self.to_string()

    def __hash__(self):
        return hash((self.variables, self.signs))

    def __eq__(self, other):
        if not isinstance(other, Clause):
            return False
        return self.variables == other.variables and self.signs == other.signs

    def literals(self):
        """Return the literals as strings, e.g. ['!A', 'B']."""
        return [NOT + v if s == NEGATED else v for v, s in zip(self.variables, self.signs)]

    def to_string(self):
        """Convert to string: 'A | !B'. A clause over no variables is the constant '0'."""
        literals = self.literals()
        if not literals:
            return FALSE
        return f" {OR} ".join(literals)

    def evaluate(self, assignment):
        """Evaluate under an assignment (variable -> '0'/'1'), returning '0' or '1'."""
        for v, s in zip(self.variables, self.signs):
            value = logic_value(assignment[v])
            if value != (s == NEGATED):
                return TRUE
        return FALSE


class ClauseSet:
    """
    The canonical CNF of a formula: its clauses in truth-table row order.

    Built once by extract_canonical_cnf() and not changed afterwards.
    """

    def __init__(self, variables, clauses):
        self.variables = tuple(variables)
        self.clauses = tuple(clauses)

    def __len__(self):
        return len(self.clauses)

    def __iter__(self):
        return iter(self.clauses)

    def __getitem__(self, index):
        return self.clauses[index]

    def __repr__(self):
        return f"ClauseSet({self.to_string()})"

    def __eq__(self, other):
        if not isinstance(other, ClauseSet):
            return False
        return self.variables == other.variables and self.clauses == other.clauses

    def to_string(self):
        """The whole CNF: '(A | B)&(!A | B)'. Empty for a tautology."""
        return AND.join(f"({c.to_string()})" for c in self.clauses)

    def evaluate(self, assignment):
        for c in self.clauses:
            if c.evaluate(assignment) == FALSE:
                return FALSE
        return TRUE


def extract_canonical_cnf(postfix, variables, verbose=False):
    """
    Derive the canonical CNF of a postfix formula from its truth table.

    Every row is evaluated independently; each row evaluating to 0 adds the
    clause that negates exactly the variables set to 1 in that row.

    Args:
        postfix: postfix token sequence
        variables: ordered variable set; must contain every variable of the
            formula
        verbose: If True, print progress to stderr

    Returns:
        ClauseSet

    Raises:
        TooManyVariablesError: more variables than get_max_variables()
        MalformedExpressionError: the formula cannot be evaluated
        InvalidAssignmentError: a formula variable is missing from `variables`
    """
    variables = list(variables)
    check_variable_limit(variables)

    clauses = []
    for row, bits, assignment in tqdm(iter_assignments(variables), total=1 << len(variables),
                                      desc="Canonical CNF", disable=not verbose):
        if evaluate(substitute_values(postfix, assignment)) == FALSE:
            clauses.append(Clause.from_bits(variables, bits))

    if verbose:
        print(f"Canonical CNF: {len(clauses)} clauses over {len(variables)} variables",
              file=sys.stderr)

    return ClauseSet(variables, clauses)


# ============================================================================
# SECTION 7: CONSEQUENCE ENUMERATION
# ============================================================================

class Consequence:
    """
    A conjunction of a subset of the canonical clauses.

    The subset is given by a selector with one bit per clause; clause 0 is
    the most significant bit, so `index` is the position of this consequence
    in enumeration order.
    """

    def __init__(self, selector, clause_set):
        if len(selector) != len(clause_set):
            raise ValueError(f"Selector has {len(selector)} bits for {len(clause_set)} clauses")
        self.selector = tuple(selector)
        self.variables = clause_set.variables
        self.clauses = tuple(c for c, bit in zip(clause_set, self.selector) if bit)

    @property
    def index(self):
        index = 0
        for bit in self.selector:
            index = (index << 1) | bit
        return index

    @property
    def is_trivial(self):
        """The empty conjunction holds under every assignment."""
        return not self.clauses

    def __repr__(self):
        return f"Consequence({self.index}: {self.to_string()})"

    def __str__(self):
        return self.to_string()

    def __len__(self):
        return len(self.clauses)

    def __hash__(self):
        return hash((self.variables, self.clauses))

    def __eq__(self, other):
        if not isinstance(other, Consequence):
            return False
        return self.variables == other.variables and self.clauses == other.clauses

    def to_string(self):
        """Convert to string: '(A | B)&(!A | B)'. The trivial consequence is ''."""
        return AND.join(f"({c.to_string()})" for c in self.clauses)

    def evaluate(self, assignment):
        for c in self.clauses:
            if c.evaluate(assignment) == FALSE:
                return FALSE
        return TRUE

    def models(self):
        """Return the set of truth-table rows under which this consequence holds."""
        return frozenset(row for row, bits, assignment in iter_assignments(self.variables)
                         if self.evaluate(assignment) == TRUE)

    def entails(self, other):
        """True if every assignment satisfying self also satisfies other."""
        return self.models() <= other.models()


def check_clause_limit(count):
    limit = get_max_clauses()
    if count > limit:
        raise TooManyClausesError(count, limit)


def enumerate_consequences(clause_set, verbose=False):
    """
    List the conjunctions of all 2^k subsets of a canonical clause set.

    Recursive binary choice: at depth i clause i is first left out, then
    taken in. The selector is owned by this call, so enumerations never
    share state. The order is the selector counted from 0 to 2^k - 1 with
    clause 0 as the most significant bit. With no clauses exactly one
    (trivial) consequence is produced.

    Args:
        clause_set: ClauseSet from extract_canonical_cnf()
        verbose: If True, show a progress bar on stderr

    Returns:
        list of Consequence, including the trivial empty conjunction

    Raises:
        TooManyClausesError: more clauses than get_max_clauses()
    """
    k = len(clause_set)
    check_clause_limit(k)

    consequences = []
    selector = []

    with tqdm(total=1 << k, desc="Consequences", disable=not verbose) as progress:
        def choose(i):
            if i == k:
                consequences.append(Consequence(selector, clause_set))
                progress.update(1)
                return
            for bit in (0, 1):
                selector.append(bit)
                choose(i + 1)
                selector.pop()

        choose(0)

    return consequences


def format_consequences(consequences):
    """
    Join the rendered consequences into one listing.

    Non-trivial consequences are joined with '&'; the trivial one shows
    nothing.
    """
    return AND.join(c.to_string() for c in consequences if not c.is_trivial)


# ============================================================================
# SECTION 8: POSET CONSTRUCTION
# ============================================================================

class ConsequencePoset:
    """
    The consequences of one formula ordered by logical strength.

    Wraps a NetworkX DiGraph: an edge i -> j means consequence j entails
    consequence i (j is at least as strong). The trivial consequence is the
    only source and the full canonical CNF the only sink.
    """

    def __init__(self, consequences, max_nodes=256):
        """
        Build the poset.

        Args:
            consequences: list of Consequence of one clause set
            max_nodes: refuse to compare more consequences than this
        """
        self.consequence_list = list(consequences)
        if len(self.consequence_list) > max_nodes:
            raise ValueError(f"Too many consequences for a poset: {len(self.consequence_list)} "
                             f"(at most {max_nodes})")

        self.graph = nx.DiGraph()
        for i in range(len(self.consequence_list)):
            self.graph.add_node(i)

        models = [c.models() for c in self.consequence_list]

        print("Building consequence poset...", file=sys.stderr)
        for i in tqdm(range(len(self.consequence_list))):
            for j in range(len(self.consequence_list)):
                if i != j and models[j] <= models[i]:
                    self.graph.add_edge(i, j)

        print(f"Poset built: {len(self.consequence_list)} nodes, {self.graph.number_of_edges()} edges",
              file=sys.stderr)

    def transitive_reduction(self):
        """
        Return the transitive reduction of this poset (its Hasse diagram).

        Returns:
            ConsequencePoset with reduced graph
        """
        reduced = ConsequencePoset.__new__(ConsequencePoset)
        reduced.consequence_list = self.consequence_list

        print("Computing transitive reduction...", file=sys.stderr)
        reduced.graph = nx.transitive_reduction(self.graph)
        print(f"Reduced to {reduced.graph.number_of_edges()} edges", file=sys.stderr)

        return reduced

    def get_consequence(self, node_id):
        return self.consequence_list[node_id]

    def predecessors(self, node_id):
        """Weaker consequences (nodes with edges pointing to this node)"""
        return list(self.graph.predecessors(node_id))

    def successors(self, node_id):
        """Stronger consequences (nodes this node points to)"""
        return list(self.graph.successors(node_id))


# ============================================================================
# SECTION 9: PIPELINE
# ============================================================================

SAMPLE_FORMULAS = (
    "p>(q|(r&s))",
    "(A|B)",
    "A>B",
    "(A&B)>A",
)


class FormulaAnalysis:
    """Everything derived from one formula."""

    def __init__(self, text, tokens, postfix, variables, clause_set, consequences):
        self.text = text
        self.tokens = tokens
        self.postfix = postfix
        self.variables = variables
        self.clause_set = clause_set
        self.consequences = consequences

    def __repr__(self):
        return (f"FormulaAnalysis({self.text!r}: {len(self.variables)} variables, "
                f"{len(self.clause_set)} clauses)")

    def postfix_string(self):
        return sequence_to_string(self.postfix)

    def evaluate(self, values):
        """Evaluate the formula under user supplied values (see make_assignment)."""
        assignment = make_assignment(self.variables, values)
        return evaluate(substitute_values(self.postfix, assignment))

    def truth_table(self):
        return truth_table(self.postfix, self.variables)

    def listing(self):
        return format_consequences(self.consequences)

    def poset(self, max_nodes=256):
        return ConsequencePoset(self.consequences, max_nodes=max_nodes)


def analyze_formula(text, verbose=False):
    """
    Run the whole pipeline on one formula.

    Args:
        text: infix formula
        verbose: If True, print progress to stderr

    Returns:
        FormulaAnalysis

    Raises:
        FormulaError: the first error detected; nothing partial is returned
    """
    tokens = string_to_sequence(text)
    postfix = infix_to_postfix(tokens)
    variables = get_variables(postfix)
    if verbose:
        print(f"{text}: postfix {sequence_to_string(postfix)}, "
              f"variables {', '.join(variables) or '(none)'}", file=sys.stderr)

    clause_set = extract_canonical_cnf(postfix, variables, verbose=verbose)
    consequences = enumerate_consequences(clause_set, verbose=verbose)

    return FormulaAnalysis(text, tokens, postfix, variables, clause_set, consequences)


def evaluate_formula(text, values):
    """
    Evaluate an infix formula under one assignment.

    Args:
        text: infix formula
        values: dict mapping variable name to 0/1 (see make_assignment)

    Returns:
        '0' or '1'
    """
    postfix = infix_to_postfix(string_to_sequence(text))
    variables = get_variables(postfix)
    assignment = make_assignment(variables, values)
    return evaluate(substitute_values(postfix, assignment))


class FormulaResult:
    """Outcome of one formula in a batch: an analysis or the error that stopped it."""

    def __init__(self, text, analysis=None, error=None):
        self.text = text
        self.analysis = analysis
        self.error = error

    @property
    def ok(self):
        return self.error is None

    def __repr__(self):
        if self.ok:
            return f"FormulaResult({self.text!r}: ok)"
        return f"FormulaResult({self.text!r}: {self.error.kind})"


def process_formulas(texts, verbose=False):
    """
    Analyze several formulas; an error in one never stops the others.

    Args:
        texts: iterable of infix formulas
        verbose: If True, print progress and errors to stderr

    Returns:
        list of FormulaResult, in input order
    """
    results = []
    for text in texts:
        try:
            results.append(FormulaResult(text, analysis=analyze_formula(text, verbose=verbose)))
        except FormulaError as e:
            if verbose:
                print(f"{text}: {e}", file=sys.stderr)
            results.append(FormulaResult(text, error=e))
    return results
