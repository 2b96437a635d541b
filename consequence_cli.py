"""
consequence_cli.py

Console driver for consequence formulas.

Runs the sample formulas (or the formulas given on the command line) through
the whole pipeline and prints each formula's postfix form, its variables and
the listing of its consequence formulas. With --interactive a single formula
and the values of its variables are read from the console and the formula is
evaluated as well.
"""

import argparse
import sys

from consequence_core import (
    FormulaError, SAMPLE_FORMULAS,
    analyze_formula, process_formulas, is_number,
)

POSET_NODE_LIMIT = 256


parser = argparse.ArgumentParser(
    description='Print the postfix form, variables and consequence formulas of propositional formulas. '
                'Operators: ! (not), & (and), | (or), > (implies), ~ (iff); variables A-Z; constants 0/1.')
parser.add_argument('formulas', nargs='*', help='Formulas to process (default: the built-in samples)')
parser.add_argument('-i', '--interactive', action='store_true',
                    help='Read one formula and its variable values from the console and evaluate it')
parser.add_argument('-v', '--verbose', action='store_true', help='Print progress to stderr')
parser.add_argument('--html', type=str, help='Write a side-by-side comparison of the Hasse diagrams of all successful formulas to this HTML file')
parser.add_argument('--dot', type=str, help='Write the Hasse diagram of the last processed formula in DOT format')


def print_error_message(err):
    print(f"*** ERROR! {err}", file=sys.stderr)


def input_expr(input_fn=input):
    return input_fn("Enter the formula:")


def input_var_values(variables, input_fn=input):
    """
    Ask for the value of every variable, repeating until 0 or 1 is entered.

    Returns:
        dict mapping variable -> '0' or '1'
    """
    values = {}
    for v in variables:
        while True:
            val = input_fn(f"{v} = ").strip()
            if is_number(val):
                break
            print("Enter 0 or 1!", file=sys.stderr)
        values[v] = val
    return values


def print_analysis(analysis):
    print(f"Formula: {analysis.text}")
    print(f"Postfix: {analysis.postfix_string()}")
    print(f"Variables: {', '.join(analysis.variables) or '(none)'}")
    print(f"Formulas of consequence: {analysis.listing()}")


def run_interactive(verbose=False, input_fn=input):
    """Read, analyze and evaluate one formula. Returns the exit status."""
    expr = input_expr(input_fn)
    try:
        analysis = analyze_formula(expr, verbose=verbose)
        print_analysis(analysis)
        values = input_var_values(analysis.variables, input_fn)
        print(f"Meaning of the expression: {analysis.evaluate(values)}")
    except FormulaError as e:
        print_error_message(e)
        return 1
    return 0


def run(formulas, verbose=False, html=None, dot=None):
    """
    Process formulas one by one; a failing formula does not stop the rest.

    Returns:
        exit status: 0 if every formula succeeded, 1 otherwise
    """
    results = process_formulas(formulas, verbose=verbose)
    status = 0
    for result in results:
        if result.ok:
            print_analysis(result.analysis)
        else:
            print_error_message(f"{result.text}: {result.error}")
            status = 1

    # Hasse diagrams are only drawn for small consequence sets
    analyses = [r.analysis for r in results
                if r.ok and len(r.analysis.consequences) <= POSET_NODE_LIMIT]
    if (html or dot) and analyses:
        from consequence_visualization import create_comparison_figure, export_to_dot

        posets = [a.poset(max_nodes=POSET_NODE_LIMIT).transitive_reduction() for a in analyses]
        if html:
            fig = create_comparison_figure(posets, titles=[a.text for a in analyses])
            fig.write_html(html)
            print(f"Wrote {html}")
        if dot:
            export_to_dot(posets[-1], dot)
            print(f"Wrote {dot}")

    return status


def main(argv=None):
    args = parser.parse_args(argv)

    if args.interactive:
        return run_interactive(verbose=args.verbose)

    formulas = args.formulas or list(SAMPLE_FORMULAS)
    return run(formulas, verbose=args.verbose, html=args.html, dot=args.dot)


if __name__ == "__main__":
    sys.exit(main())
