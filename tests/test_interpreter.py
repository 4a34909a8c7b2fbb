import pytest
from abstra_lox import LoxSession, LoxRuntimeError, LoxSyntaxError


def lox(code: str) -> str:
    """Helper: execute code, return printed output."""
    s = LoxSession()
    return s.execute(code)


def lox_eval(expr: str):
    """Helper: evaluate expression, return Python value."""
    s = LoxSession()
    return s.eval(expr)


# ===================== LITERALS =====================

class TestLiterals:
    def test_nil(self):
        assert lox_eval("nil") is None

    def test_true(self):
        assert lox_eval("true") is True

    def test_false(self):
        assert lox_eval("false") is False

    def test_number(self):
        assert lox_eval("42") == 42.0

    def test_decimal(self):
        assert lox_eval("3.14") == 3.14

    def test_string(self):
        assert lox_eval('"hello"') == "hello"

    def test_negative_number(self):
        assert lox_eval("-5") == -5.0


# ===================== ARITHMETIC =====================

class TestArithmetic:
    def test_add(self):
        assert lox_eval("1 + 1") == 2.0

    def test_sub(self):
        assert lox_eval("10 - 3") == 7.0

    def test_mul(self):
        assert lox_eval("4 * 5") == 20.0

    def test_div(self):
        assert lox_eval("10 / 4") == 2.5

    def test_precedence_mul_add(self):
        assert lox_eval("2 + 3 * 4") == 14.0

    def test_grouping(self):
        assert lox_eval("(2 + 3) * 4") == 20.0

    def test_unary_minus(self):
        assert lox_eval("-(3 + 2)") == -5.0

    def test_divide_by_zero(self):
        with pytest.raises(LoxRuntimeError, match="Attempted to divide by zero."):
            lox_eval("1 / 0")

    def test_divide_by_negative_zero(self):
        with pytest.raises(LoxRuntimeError, match="divide by zero"):
            lox_eval("1 / -0")

    def test_zero_divided_is_fine(self):
        assert lox_eval("0 / 5") == 0.0

    def test_arithmetic_on_string(self):
        with pytest.raises(LoxRuntimeError, match="Operands must be numbers."):
            lox_eval('"a" - 1')

    def test_negate_string(self):
        with pytest.raises(LoxRuntimeError, match="Operand must be a number."):
            lox_eval('-"a"')

    def test_add_bool_and_number(self):
        with pytest.raises(LoxRuntimeError, match="Operands must be two numbers or at least one string."):
            lox_eval("true + 1")


# ===================== STRINGS =====================

class TestStrings:
    def test_concat(self):
        assert lox_eval('"hello" + " " + "world"') == "hello world"

    def test_concat_number_right(self):
        assert lox_eval('"a" + 1') == "a1"

    def test_concat_number_left(self):
        assert lox_eval('2.5 + "x"') == "2.5x"

    def test_concat_nil_and_bool(self):
        assert lox_eval('"v: " + nil + true') == "v: niltrue"


# ===================== COMPARISON / EQUALITY =====================

class TestComparison:
    def test_lt(self):
        assert lox_eval("1 < 2") is True

    def test_le(self):
        assert lox_eval("2 <= 2") is True

    def test_gt(self):
        assert lox_eval("3 > 4") is False

    def test_ge(self):
        assert lox_eval("3 >= 3") is True

    def test_compare_strings_is_error(self):
        with pytest.raises(LoxRuntimeError, match="Operands must be numbers."):
            lox_eval('"a" < "b"')

    def test_eq_numbers(self):
        assert lox_eval("1 == 1") is True

    def test_eq_strings(self):
        assert lox_eval('"a" == "a"') is True

    def test_nil_eq_nil(self):
        assert lox_eval("nil == nil") is True

    def test_nil_neq_false(self):
        assert lox_eval("nil == false") is False

    def test_true_neq_one(self):
        assert lox_eval("true == 1") is False

    def test_number_neq_string(self):
        assert lox_eval('1 == "1"') is False

    def test_neq(self):
        assert lox_eval("1 != 2") is True


# ===================== LOGICAL / TRUTHINESS =====================

class TestLogical:
    def test_and_returns_operand(self):
        assert lox_eval('1 and "x"') == "x"

    def test_and_false(self):
        assert lox_eval("false and 42") is False

    def test_or_returns_first_truthy(self):
        assert lox_eval("nil or 42") == 42.0

    def test_or_true(self):
        assert lox_eval('"a" or 42') == "a"

    def test_not(self):
        assert lox_eval("!nil") is True

    def test_zero_is_truthy(self):
        assert lox_eval("!0") is False

    def test_empty_string_is_truthy(self):
        assert lox_eval('!""') is False

    def test_short_circuit_and(self):
        out = lox("var called = false; fun f() { called = true; return true; } false and f(); print called;")
        assert out == "false"

    def test_short_circuit_or(self):
        out = lox("fun boom() { return 1 / 0; } print true or boom();")
        assert out == "true"

    def test_ternary(self):
        assert lox_eval("1 < 2 ? \"yes\" : \"no\"") == "yes"

    def test_ternary_evaluates_one_branch(self):
        out = lox("print false ? 1 / 0 : 2;")
        assert out == "2"

    def test_comma_returns_right(self):
        assert lox_eval("1, 2, 3") == 3.0


# ===================== PRINT =====================

class TestPrint:
    def test_integral_number_drops_fraction(self):
        assert lox("print 6.0;") == "6"

    def test_fraction_kept(self):
        assert lox("print 6.5;") == "6.5"

    def test_nil(self):
        assert lox("print nil;") == "nil"

    def test_booleans(self):
        assert lox("print true; print false;") == "true\nfalse"

    def test_string_without_quotes(self):
        assert lox('print "hi";') == "hi"

    def test_function(self):
        assert lox("fun f() {} print f;") == "<fn f>"

    def test_anonymous_function(self):
        assert lox("print fun () {};") == "<fn>"

    def test_native(self):
        assert lox("print clock;") == "<native fn>"

    def test_class_and_instance(self):
        assert lox("class Bag {} print Bag; print Bag();") == "Bag\nBag instance"

    def test_negative_zero(self):
        assert lox("print -0;") == "-0"

    def test_large_integral_number_keeps_all_digits(self):
        assert lox("print 10000000000000000;") == "10000000000000000"

    def test_infinity(self):
        big = "1" + "0" * 308
        assert lox(f"var big = {big}; print big * 10; print -big * 10;") == "Infinity\n-Infinity"

    def test_nan(self):
        big = "1" + "0" * 308
        assert lox(f"var inf = {big} * 10; print inf - inf;") == "NaN"

    def test_small_fraction(self):
        assert lox("print 0.25;") == "0.25"


# ===================== VARIABLES =====================

class TestVariables:
    def test_global(self):
        assert lox("var a = 1; print a;") == "1"

    def test_uninitialized_is_nil(self):
        assert lox("var a; print a;") == "nil"

    def test_assignment_returns_value(self):
        assert lox("var a; var b; a = b = 3; print a + b;") == "6"

    def test_block_shadowing(self):
        out = lox('var a = "outer"; { var a = "inner"; print a; } print a;')
        assert out == "inner\nouter"

    def test_assign_outer_from_block(self):
        assert lox("var a = 1; { a = 2; } print a;") == "2"

    def test_redefine_global(self):
        assert lox("var a = 1; var a = 2; print a;") == "2"

    def test_undefined_variable(self):
        with pytest.raises(LoxRuntimeError, match="Undefined variable 'undeclared'."):
            lox("print undeclared;")

    def test_assign_undefined(self):
        with pytest.raises(LoxRuntimeError, match="Undefined variable 'x'."):
            lox("x = 1;")

    def test_static_scope_ignores_later_shadow(self):
        source = """
        var a = "global";
        {
          fun showA() { print a; }
          showA();
          var a = "block";
          showA();
        }
        """
        assert lox(source) == "global\nglobal"


# ===================== CONTROL FLOW =====================

class TestIf:
    def test_then(self):
        assert lox("if (true) print 1; else print 2;") == "1"

    def test_else(self):
        assert lox("if (nil) print 1; else print 2;") == "2"

    def test_no_else(self):
        assert lox("if (false) print 1;") == ""


class TestWhile:
    def test_counts(self):
        assert lox("var i = 0; while (i < 3) { print i; i = i + 1; }") == "0\n1\n2"

    def test_break(self):
        out = lox("var i = 0; while (true) { if (i == 2) break; print i; i = i + 1; }")
        assert out == "0\n1"

    def test_continue(self):
        source = """
        var i = 0;
        while (i < 5) {
          i = i + 1;
          if (i == 2 or i == 4) continue;
          print i;
        }
        """
        assert lox(source) == "1\n3\n5"

    def test_break_only_exits_inner_loop(self):
        source = """
        for (var i = 0; i < 2; i = i + 1) {
          for (var j = 0; j < 10; j = j + 1) {
            if (j == 1) break;
            print i + j;
          }
        }
        """
        assert lox(source) == "0\n1"


class TestFor:
    def test_basic(self):
        assert lox("for (var i = 0; i < 3; i = i + 1) print i;") == "0\n1\n2"

    def test_continue_still_runs_increment(self):
        source = "for (var i = 0; i < 5; i = i + 1) { if (i == 2) continue; print i; }"
        assert lox(source) == "0\n1\n3\n4"

    def test_loop_variable_is_scoped(self):
        with pytest.raises(LoxRuntimeError, match="Undefined variable 'i'."):
            lox("for (var i = 0; i < 1; i = i + 1) {} print i;")

    def test_expression_initializer(self):
        assert lox("var i; for (i = 0; i < 2; i = i + 1) {} print i;") == "2"

    def test_no_condition_with_break(self):
        assert lox("var n = 0; for (;;) { n = n + 1; if (n == 3) break; } print n;") == "3"

    def test_closures_capture_per_iteration_body_scope(self):
        source = """
        var fns = nil;
        fun chain(prev, f) { fun both() { if (prev != nil) prev(); f(); } return both; }
        for (var i = 0; i < 3; i = i + 1) {
          var j = i;
          fun show() { print j; }
          fns = chain(fns, show);
        }
        fns();
        """
        assert lox(source) == "0\n1\n2"


# ===================== FUNCTIONS =====================

class TestFunctions:
    def test_call(self):
        assert lox("fun add(a, b) { return a + b; } print add(1, 2);") == "3"

    def test_implicit_nil_return(self):
        assert lox("fun f() {} print f();") == "nil"

    def test_bare_return(self):
        assert lox("fun f() { return; print 1; } print f();") == "nil"

    def test_return_from_nested_loop(self):
        source = """
        fun find() {
          for (var i = 0; i < 10; i = i + 1) {
            while (true) { if (i == 3) return i; break; }
          }
          return -1;
        }
        print find();
        """
        assert lox(source) == "3"

    def test_recursion(self):
        source = "fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); } print fib(15);"
        assert lox(source) == "610"

    def test_forward_reference_between_globals(self):
        source = """
        fun isEven(n) { if (n == 0) return true; return isOdd(n - 1); }
        fun isOdd(n) { if (n == 0) return false; return isEven(n - 1); }
        print isEven(10);
        """
        assert lox(source) == "true"

    def test_closure_counter(self):
        source = """
        fun make() { var i = 0; fun inc() { i = i + 1; return i; } return inc; }
        var f = make();
        f();
        print f();
        """
        assert lox(source) == "2"

    def test_closures_share_environment(self):
        source = """
        var get; var set;
        fun make() {
          var v = "start";
          fun g() { return v; }
          fun s(x) { v = x; }
          get = g; set = s;
        }
        make();
        set("changed");
        print get();
        """
        assert lox(source) == "changed"

    def test_independent_closures(self):
        source = """
        fun make() { var i = 0; fun inc() { i = i + 1; return i; } return inc; }
        var a = make(); var b = make();
        a(); a();
        print b();
        """
        assert lox(source) == "1"

    def test_anonymous_function(self):
        assert lox("var sq = fun (x) { return x * x; }; print sq(4);") == "16"

    def test_immediately_invoked(self):
        assert lox("print fun (a) { return a + 1; }(1);") == "2"

    def test_named_function_expression_recursion(self):
        source = "var f = fun fact(n) { return n < 2 ? 1 : n * fact(n - 1); }; print f(5);"
        assert lox(source) == "120"

    def test_functions_as_arguments(self):
        source = "fun twice(f, x) { return f(f(x)); } fun inc(n) { return n + 1; } print twice(inc, 1);"
        assert lox(source) == "3"

    def test_arguments_evaluated_left_to_right(self):
        source = """
        var log = "";
        fun t(s) { log = log + s; return s; }
        fun f(a, b, c) {}
        f(t("a"), t("b"), t("c"));
        print log;
        """
        assert lox(source) == "abc"

    def test_wrong_arity(self):
        with pytest.raises(LoxRuntimeError, match="Expected 2 arguments but got 1."):
            lox("fun f(a, b) {} f(1);")

    def test_call_non_callable(self):
        with pytest.raises(LoxRuntimeError, match="Can only call functions and classes."):
            lox('"text"();')

    def test_clock(self):
        assert lox_eval("clock() > 0") is True

    def test_stack_overflow(self):
        s = LoxSession(max_call_depth=50)
        with pytest.raises(LoxRuntimeError, match="Stack overflow."):
            s.execute("fun f() { f(); } f();")

    def test_default_call_depth_is_reachable(self):
        source = "fun f(n) { if (n == 0) return 0; return f(n - 1) + 1; } print f(198);"
        assert lox(source) == "198"

    def test_default_call_depth_overflows_past_limit(self):
        with pytest.raises(LoxRuntimeError, match="Stack overflow."):
            lox("fun f(n) { if (n == 0) return 0; return f(n - 1) + 1; } print f(200);")


# ===================== CLASSES =====================

class TestClasses:
    def test_fields(self):
        assert lox("class P {} var p = P(); p.x = 3; print p.x;") == "3"

    def test_set_returns_value(self):
        assert lox("class P {} var p = P(); print p.x = 4;") == "4"

    def test_method_uses_this(self):
        source = 'class G { hi() { return "hi " + this.name; } } var g = G(); g.name = "bob"; print g.hi();'
        assert lox(source) == "hi bob"

    def test_initializer(self):
        source = "class A { init(x) { this.x = x; } } print A(7).x;"
        assert lox(source) == "7"

    def test_initializer_return_value_ignored(self):
        source = "class A { init() { this.v = 1; return; } } var a = A(); print a.init() == a;"
        assert lox(source) == "true"

    def test_class_arity_from_init(self):
        with pytest.raises(LoxRuntimeError, match="Expected 1 arguments but got 0."):
            lox("class A { init(x) { this.x = x; } } A();")

    def test_class_without_init_takes_no_args(self):
        with pytest.raises(LoxRuntimeError, match="Expected 0 arguments but got 1."):
            lox("class A {} A(1);")

    def test_fields_shadow_methods(self):
        source = 'class A { m() { return "method"; } } var a = A(); a.m = fun () { return "field"; }; print a.m();'
        assert lox(source) == "field"

    def test_bound_method_keeps_receiver(self):
        source = """
        class Counter { init() { this.n = 0; } inc() { this.n = this.n + 1; return this.n; } }
        var c = Counter();
        var inc = c.inc;
        inc(); inc();
        print c.n;
        """
        assert lox(source) == "2"

    def test_this_in_closure_inside_method(self):
        source = """
        class Box { init(v) { this.v = v; } getter() { fun g() { return this.v; } return g; } }
        print Box(9).getter()();
        """
        assert lox(source) == "9"

    def test_undefined_property(self):
        with pytest.raises(LoxRuntimeError, match="Undefined property 'nope'."):
            lox("class A {} A().nope;")

    def test_property_on_non_instance(self):
        with pytest.raises(LoxRuntimeError, match="Only instances have properties."):
            lox('"str".length;')

    def test_field_on_non_instance(self):
        with pytest.raises(LoxRuntimeError, match="Only instances have fields."):
            lox("var n = 1; n.x = 2;")

    def test_instances_compare_by_identity(self):
        assert lox("class A {} var a = A(); print a == a; print A() == A();") == "true\nfalse"


class TestInheritance:
    def test_super_call(self):
        source = """
        class A { init(x) { this.x = x; } get() { return this.x; } }
        class B < A { get() { return super.get() + 1; } }
        var b = B(5);
        print b.get();
        """
        assert lox(source) == "6"

    def test_inherited_method(self):
        source = 'class A { hi() { return "A"; } } class B < A {} print B().hi();'
        assert lox(source) == "A"

    def test_inherited_initializer_arity(self):
        with pytest.raises(LoxRuntimeError, match="Expected 1 arguments but got 0."):
            lox("class A { init(x) {} } class B < A {} B();")

    def test_super_skips_own_override(self):
        source = """
        class A { name() { return "A"; } }
        class B < A { name() { return "B"; } test() { return super.name(); } }
        class C < B {}
        print C().test();
        """
        assert lox(source) == "A"

    def test_override(self):
        source = 'class A { m() { return 1; } } class B < A { m() { return 2; } } print B().m();'
        assert lox(source) == "2"

    def test_superclass_must_be_class(self):
        with pytest.raises(LoxRuntimeError, match="Superclass must be a class."):
            lox('var NotAClass = "x"; class B < NotAClass {}')

    def test_undefined_super_method(self):
        with pytest.raises(LoxRuntimeError, match="Undefined property 'missing'."):
            lox("class A {} class B < A { m() { return super.missing(); } } B().m();")

    def test_local_class(self):
        source = """
        fun make() {
          class A { v() { return 1; } }
          class B < A { v() { return super.v() + 1; } }
          return B();
        }
        print make().v();
        """
        assert lox(source) == "2"


# ===================== STATIC ERRORS =====================

class TestStaticErrors:
    def test_syntax_error_raises(self):
        with pytest.raises(LoxSyntaxError, match="Expect ';' after value."):
            lox("print 1")

    def test_two_syntax_errors_reported_together(self):
        with pytest.raises(LoxSyntaxError) as info:
            lox("print (1;\nvar = 2;\nprint 3;")
        assert len(info.value.messages) == 2

    def test_break_outside_loop_never_runs(self):
        with pytest.raises(LoxSyntaxError, match="Can't break"):
            lox('print "ran"; break;')

    def test_lexical_error(self):
        with pytest.raises(LoxSyntaxError, match="Unexpected character."):
            lox("print 1 @ 2;")

    def test_deeply_nested_expression(self):
        source = "print " + "(" * 2000 + "1" + ")" * 2000 + ";"
        with pytest.raises(LoxSyntaxError, match="Too much nesting."):
            lox(source)

    def test_moderately_nested_expression_runs(self):
        assert lox("print " + "(" * 50 + "1" + ")" * 50 + ";") == "1"


# ===================== COMPLEX PROGRAMS =====================

class TestComplexPrograms:
    def test_linked_list(self):
        source = """
        class Node { init(value, next) { this.value = value; this.next = next; } }
        var list = nil;
        for (var i = 1; i <= 4; i = i + 1) list = Node(i, list);
        var sum = 0;
        while (list != nil) { sum = sum + list.value; list = list.next; }
        print sum;
        """
        assert lox(source) == "10"

    def test_accumulator_object(self):
        source = """
        class Acc {
          init() { this.total = 0; }
          add(n) { this.total = this.total + n; return this; }
        }
        print Acc().add(1).add(2).add(3).total;
        """
        assert lox(source) == "6"

    def test_fizzbuzz_fragment(self):
        source = """
        fun mod(a, b) { while (a >= b) a = a - b; return a; }
        for (var i = 1; i <= 5; i = i + 1) {
          if (mod(i, 3) == 0) print "Fizz";
          else if (mod(i, 5) == 0) print "Buzz";
          else print i;
        }
        """
        assert lox(source) == "1\n2\nFizz\n4\nBuzz"
