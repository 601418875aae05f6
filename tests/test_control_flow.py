"""Tests for loops, break/continue, return and try/catch/finally."""

from errors import ErrorCode, ErrorKind, UncaughtThrow


def test_if_else(run):
    outcome = run("""
        if (1 > 2) print "no"; else print "yes";
        if (nil) print "skipped";
        if ("") { print "empty string is truthy"; }
    """)
    assert outcome.lines == ["yes", "empty string is truthy"]


def test_while_loop(run):
    assert run("var i = 0; while (i < 3) { print i; i = i + 1; }").lines == ["0", "1", "2"]


def test_do_while_runs_body_once_before_checking(run):
    outcome = run("var i = 10; do { print i; i = i + 1; } while (i < 3);")
    assert outcome.lines == ["10"]


def test_do_while_repeats(run):
    outcome = run("var i = 0; do { i = i + 1; } while (i < 5); print i;")
    assert outcome.lines == ["5"]


def test_for_loop_variable_is_scoped_to_the_loop(run):
    outcome = run("for (var i = 0; i < 2; i = i + 1) print i; print i;")
    assert outcome.lines == ["0", "1"]
    assert outcome.error.kind is ErrorKind.UNDEFINED_VARIABLE


def test_for_loop_closures_capture_each_iteration(run):
    outcome = run("""
        var fs = [];
        for (var i = 0; i < 3; i = i + 1) {
            fs.add(() => i);
        }
        for (var j = 0; j < 3; j = j + 1) print fs[j]();
    """)
    assert outcome.lines == ["0", "1", "2"]


def test_body_assignment_carries_into_next_iteration(run):
    outcome = run("""
        for (var i = 0; i < 10; i = i + 1) {
            i = i + 3;
            print i;
        }
    """)
    assert outcome.lines == ["3", "7", "11"]


def test_break_leaves_only_the_innermost_loop(run):
    outcome = run("""
        for (var i = 0; i < 3; i = i + 1) {
            for (var j = 0; j < 3; j = j + 1) {
                if (j == 1) break;
                print i * 10 + j;
            }
        }
    """)
    assert outcome.lines == ["0", "10", "20"]


def test_continue_in_for_still_runs_the_increment(run):
    outcome = run("""
        for (var i = 0; i < 5; i = i + 1) {
            if (i % 2 == 0) continue;
            print i;
        }
    """)
    assert outcome.lines == ["1", "3"]


def test_continue_in_while(run):
    outcome = run("""
        var i = 0;
        while (i < 4) {
            i = i + 1;
            if (i == 2) continue;
            print i;
        }
    """)
    assert outcome.lines == ["1", "3", "4"]


def test_continue_in_do_while_checks_the_condition(run):
    outcome = run("""
        var i = 0;
        do {
            i = i + 1;
            if (i < 3) continue;
            print i;
        } while (i < 3);
    """)
    assert outcome.lines == ["3"]


def test_return_from_inside_loops(run):
    outcome = run("""
        fun find() {
            for (var i = 0; ; i = i + 1) {
                while (true) {
                    if (i == 3) return i;
                    break;
                }
            }
        }
        print find();
    """)
    assert outcome.lines == ["3"]


def test_throw_and_catch(run):
    assert run("try { throw 42; } catch (e) { print e; }").lines == ["42"]


def test_thrown_value_crosses_function_calls(run):
    outcome = run("""
        fun inner() { throw "boom"; }
        fun outer() { inner(); print "unreachable"; }
        try {
            print 1 + outer();
        } catch (e) {
            print "caught " + e;
        }
        print "after";
    """)
    assert outcome.lines == ["caught boom", "after"]


def test_any_value_can_be_thrown(run):
    outcome = run("""
        try { throw {code: 7}; } catch (e) { print e["code"]; }
        try { throw nil; } catch (e) { print e; }
    """)
    assert outcome.lines == ["7", "nil"]


def test_catch_variable_is_scoped_to_the_handler(run):
    outcome = run("try { throw 1; } catch (e) { } print e;")
    assert outcome.error.kind is ErrorKind.UNDEFINED_VARIABLE


def test_finally_runs_before_return(run):
    outcome = run("""
        fun f() {
            try {
                return 1;
            } finally {
                print "cleanup";
            }
        }
        print f();
    """)
    assert outcome.lines == ["cleanup", "1"]


def test_return_in_finally_supersedes(run):
    outcome = run("""
        fun f() {
            try { return 1; } finally { return 2; }
        }
        fun g() {
            try { throw "lost"; } finally { return "replaced"; }
        }
        print f();
        print g();
    """)
    assert outcome.lines == ["2", "replaced"]


def test_finally_runs_after_catch(run):
    outcome = run("""
        try { throw 1; } catch (e) { print "caught"; } finally { print "finally"; }
        try { print "ok"; } catch (e) { print "never"; } finally { print "finally"; }
    """)
    assert outcome.lines == ["caught", "finally", "ok", "finally"]


def test_finally_without_catch_propagates_the_throw(run):
    outcome = run("""
        try {
            try { throw "x"; } finally { print "inner"; }
        } catch (e) {
            print "outer " + e;
        }
    """)
    assert outcome.lines == ["inner", "outer x"]


def test_throw_from_catch_propagates(run):
    outcome = run("""
        try {
            try { throw 1; } catch (e) { throw e + 1; }
        } catch (e) {
            print e;
        }
    """)
    assert outcome.lines == ["2"]


def test_break_through_finally(run):
    outcome = run("""
        while (true) {
            try { break; } finally { print "finally"; }
        }
        print "after";
    """)
    assert outcome.lines == ["finally", "after"]


def test_uncaught_throw_ends_the_program(run):
    outcome = run('print "start";\nthrow "bad";\nprint "never";')
    assert outcome.exit_code == 70
    assert outcome.lines == ["start"]
    error = outcome.error
    assert isinstance(error, UncaughtThrow)
    assert error.code == ErrorCode.UNCAUGHT_EXCEPTION
    assert error.message == "uncaught exception: bad"
    assert error.payload == "bad"
    assert error.line == 2


def test_uncaught_composite_payload_is_stringified(run):
    outcome = run("throw [1, 2];")
    assert outcome.error.message == "uncaught exception: [1, 2]"


def test_runtime_errors_bypass_try_by_default(run):
    outcome = run("""
        try {
            print 1 / 0;
        } catch (e) {
            print "caught";
        } finally {
            print "finally";
        }
    """)
    assert outcome.exit_code == 70
    assert outcome.lines == []
    assert outcome.error.kind is ErrorKind.DIVISION_BY_ZERO


def test_runtime_errors_can_be_caught_as_messages(run):
    outcome = run("""
        try {
            print 1 / 0;
        } catch (e) {
            print "caught: " + e;
        } finally {
            print "finally";
        }
        fun f() { return missing; }
        try { f(); } catch (e) { print e; }
    """, catch_runtime_errors=True)
    assert outcome.exit_code == 0, outcome.stderr
    assert outcome.lines == ["caught: division by zero", "finally", "undefined variable 'missing'"]


def test_uncaught_converted_runtime_error(run):
    outcome = run("print nope;", catch_runtime_errors=True)
    assert outcome.exit_code == 70
    assert outcome.error.message == "uncaught exception: undefined variable 'nope'"


def test_stack_overflow_is_never_catchable(run):
    outcome = run("""
        fun down() { down(); }
        try { down(); } catch (e) { print "caught"; }
    """, catch_runtime_errors=True, max_call_depth=50)
    assert outcome.exit_code == 70
    assert outcome.lines == []
    assert outcome.error.kind is ErrorKind.STACK_OVERFLOW


def test_deep_but_bounded_recursion_is_fine(run):
    outcome = run("""
        fun count(n) { if (n == 0) return 0; return 1 + count(n - 1); }
        print count(400);
    """)
    assert outcome.lines == ["400"]
