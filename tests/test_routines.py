"""Tests for the event routines and their dispatch."""

import unittest

from jobsim.core.event_queue import EventType
from jobsim.core.payloads import (
    Default,
    EndProcess,
    ExitSystem,
    FreeCPU,
    FreeMemory,
    Job,
    JobArrival,
    JobEntrance,
    JobState,
    PauseJob,
    RequestCPU,
    RequestMemory,
)
from jobsim.scheduling.routines import (
    IMMEDIATE,
    DefaultRoutine,
    JobArrivalRoutine,
    create_event_routines,
    create_routine,
    select_routine,
)
from jobsim.system.control import ControlModule
from jobsim.system.scheduling_table import NOT_FOUND


def make_job(job_id, memory_size=30, cpu_time=25, state=JobState.ENTERED):
    return Job(id=job_id, state=state, memory_size=memory_size, cpu_time=cpu_time)


def run(kind, payload, control):
    create_routine(kind, payload).run(control)


class RoutineTestCase(unittest.TestCase):

    def setUp(self):
        self.control = ControlModule(memory_capacity=128)

    def pending(self):
        return [(e.time, e.name) for e in self.control.pending_events()]

    def only_event(self):
        events = self.control.pending_events()
        self.assertEqual(len(events), 1)
        return events[0]


class TestDispatch(unittest.TestCase):
    """Name table and routine factory."""

    def test_canonical_names(self):
        table = create_event_routines()
        for kind in EventType:
            self.assertIs(select_routine(table, kind.value), kind)

    def test_unknown_name_resolves_to_default(self):
        table = create_event_routines()
        self.assertIs(select_routine(table, "Encerramento"), EventType.DEFAULT)

    def test_aliases(self):
        table = create_event_routines({"Chegada de job": "job_arrival"})
        self.assertIs(select_routine(table, "Chegada de job"), EventType.JOB_ARRIVAL)

    def test_alias_to_unknown_routine(self):
        with self.assertRaises(ValueError):
            create_event_routines({"x": "teleport_job"})

    def test_factory_builds_matching_routine(self):
        routine = create_routine(EventType.JOB_ARRIVAL, JobArrival(1, 10, 5))
        self.assertIsInstance(routine, JobArrivalRoutine)

    def test_factory_copies_payload(self):
        job = make_job(1)
        payload = JobEntrance(job)
        routine = create_routine(EventType.JOB_ENTRANCE, payload)

        routine.run(ControlModule())

        self.assertIsNot(routine.payload.job, job)
        self.assertEqual(job.state, JobState.ENTERED)
        self.assertIsNot(routine.payload, payload)

    def test_payload_kind_mismatch(self):
        with self.assertRaises(TypeError):
            create_routine(EventType.REQUEST_CPU, JobArrival(1, 10, 5))

    def test_default_routine_is_a_no_op(self):
        control = ControlModule()
        routine = create_routine(EventType.DEFAULT, Default())
        routine.run(control)

        self.assertIsInstance(routine, DefaultRoutine)
        self.assertFalse(control.has_events())
        self.assertEqual(control.snapshot()['seq'], [])


class TestArrivalAndEntrance(RoutineTestCase):

    def test_arrival_with_idle_cpu_enters_immediately(self):
        run(EventType.JOB_ARRIVAL, JobArrival(1, 30, 5), self.control)

        event = self.only_event()
        self.assertEqual((event.time, event.name), (IMMEDIATE, "job_entrance"))
        self.assertEqual(event.payload.job.state, JobState.ARRIVED)
        self.assertTrue(self.control.seq_is_empty())

    def test_entrance_goes_ahead_of_arrival_due_at_same_time(self):
        self.control.add_event(0, "job_arrival", JobArrival(2, 30, 5))
        run(EventType.JOB_ARRIVAL, JobArrival(1, 30, 5), self.control)

        events = self.control.pending_events()
        self.assertEqual([(e.name, e.immediate) for e in events],
                         [("job_entrance", True), ("job_arrival", False)])

    def test_arrival_with_busy_cpu_waits_for_entry(self):
        self.control.add_eq(make_job(9))
        run(EventType.JOB_ARRIVAL, JobArrival(1, 30, 5), self.control)

        self.assertFalse(self.control.has_events())
        self.assertEqual(self.control.snapshot()['seq'], [1])

    def test_entrance_requests_memory(self):
        run(EventType.JOB_ENTRANCE, JobEntrance(make_job(1, state=JobState.ARRIVED)), self.control)

        event = self.only_event()
        self.assertEqual(event.name, "request_memory")
        self.assertEqual(event.payload.job.state, JobState.ENTERED)

    def test_entrance_takes_job_off_entry_stack(self):
        job = make_job(1, state=JobState.ARRIVED)
        self.control.add_seq(make_job(2))
        self.control.add_seq(job)
        run(EventType.JOB_ENTRANCE, JobEntrance(job), self.control)

        self.assertEqual(self.control.snapshot()['seq'], [2])


class TestRequestMemory(RoutineTestCase):

    def test_success_moves_job_to_cpu_wait(self):
        run(EventType.REQUEST_MEMORY, RequestMemory(make_job(1)), self.control)

        self.assertEqual(self.control.available_memory(), 98)
        self.assertEqual(self.control.snapshot()['caq'], [1])
        event = self.only_event()
        self.assertEqual((event.time, event.name), (IMMEDIATE, "request_cpu"))
        self.assertEqual(event.payload.job.state, JobState.MEMORY_READY)

    def test_failure_parks_job_and_dispatches_another(self):
        control = ControlModule(memory_capacity=50)
        control.allocate_memory(make_job(7), 40)
        control.add_caq(make_job(7))

        run(EventType.REQUEST_MEMORY, RequestMemory(make_job(1, memory_size=20)), control)

        state = control.snapshot()
        self.assertEqual(state['maq'], [1])
        self.assertEqual(state['caq'], [])
        events = control.pending_events()
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].name, "request_cpu")
        self.assertEqual(events[0].payload.job.id, 7)

    def test_failure_with_nothing_to_run(self):
        control = ControlModule(memory_capacity=20)
        run(EventType.REQUEST_MEMORY, RequestMemory(make_job(1, memory_size=30)), control)

        self.assertEqual(control.snapshot()['maq'], [1])
        self.assertFalse(control.has_events())


class TestRequestCPU(RoutineTestCase):

    def test_first_dispatch_of_short_job_ends(self):
        self.control.set_current_timestep(20)
        job = make_job(1, cpu_time=7, state=JobState.MEMORY_READY)
        self.control.add_caq(job)

        run(EventType.REQUEST_CPU, RequestCPU(job), self.control)

        self.assertEqual(self.control.remaining_quantum(1), 7)
        state = self.control.snapshot()
        self.assertEqual(state['caq'], [])
        self.assertEqual(state['eq'], [1])
        event = self.only_event()
        self.assertEqual((event.time, event.name), (27, "end_process"))
        self.assertEqual(event.payload.job.state, JobState.RUNNING)

    def test_job_of_exactly_one_slice_ends(self):
        run(EventType.REQUEST_CPU, RequestCPU(make_job(1, cpu_time=10)), self.control)
        self.assertEqual(self.pending(), [(10, "end_process")])

    def test_first_dispatch_of_long_job_pauses(self):
        run(EventType.REQUEST_CPU, RequestCPU(make_job(1, cpu_time=25)), self.control)

        self.assertEqual(self.pending(), [(10, "pause_job")])
        self.assertEqual(self.control.remaining_quantum(1), 25)

    def test_resumed_job_uses_remaining_time(self):
        self.control.register_job(1, 25)
        self.control.consume_quantum(1, 10)
        self.control.consume_quantum(1, 10)
        self.control.set_current_timestep(20)

        run(EventType.REQUEST_CPU, RequestCPU(make_job(1, cpu_time=25)), self.control)

        self.assertEqual(self.pending(), [(25, "end_process")])
        self.assertEqual(self.control.snapshot()['eq'], [1])

    def test_resumed_job_with_more_than_a_slice_pauses(self):
        self.control.register_job(1, 25)
        self.control.consume_quantum(1, 10)
        self.control.set_current_timestep(10)

        run(EventType.REQUEST_CPU, RequestCPU(make_job(1)), self.control)

        self.assertEqual(self.pending(), [(20, "pause_job")])

    def test_job_below_top_of_cpu_wait_stays_queued(self):
        self.control.add_caq(make_job(1))
        self.control.add_caq(make_job(2))

        run(EventType.REQUEST_CPU, RequestCPU(make_job(1)), self.control)

        self.assertEqual(self.control.snapshot()['caq'], [1, 2])


class TestPauseJob(RoutineTestCase):

    def running(self, job_id, cpu_time=25):
        job = make_job(job_id, cpu_time=cpu_time, state=JobState.RUNNING)
        self.control.register_job(job_id, cpu_time)
        self.control.add_eq(job)
        return job

    def test_lone_job_resumes(self):
        job = self.running(1)
        self.control.set_current_timestep(10)

        run(EventType.PAUSE_JOB, PauseJob(job), self.control)

        self.assertEqual(self.control.remaining_quantum(1), 15)
        self.assertEqual(self.control.snapshot()['eq'], [])
        event = self.only_event()
        self.assertEqual((event.time, event.name), (IMMEDIATE, "request_cpu"))
        self.assertEqual(event.payload.job.id, 1)
        self.assertEqual(event.payload.job.state, JobState.MEMORY_READY)

    def test_admits_waiting_job_below_limit(self):
        job = self.running(1)
        self.control.add_seq(make_job(2, state=JobState.ARRIVED))
        self.control.add_seq(make_job(3, state=JobState.ARRIVED))

        run(EventType.PAUSE_JOB, PauseJob(job), self.control)

        state = self.control.snapshot()
        self.assertEqual(state['eq'], [])
        self.assertEqual(state['caq'], [1])
        self.assertEqual(state['seq'], [2])
        event = self.only_event()
        self.assertEqual(event.name, "request_memory")
        self.assertEqual(event.payload.job.id, 3)
        self.assertEqual(event.payload.job.state, JobState.ENTERED)

    def test_rotates_at_limit(self):
        waiting = make_job(2, state=JobState.MEMORY_READY)
        self.control.register_job(2, 15)
        self.control.add_caq(waiting)
        job = self.running(1)
        self.control.add_seq(make_job(3, state=JobState.ARRIVED))

        run(EventType.PAUSE_JOB, PauseJob(job), self.control)

        state = self.control.snapshot()
        self.assertEqual(state['caq'], [1])
        self.assertEqual(state['seq'], [3])
        event = self.only_event()
        self.assertEqual(event.name, "request_cpu")
        self.assertEqual(event.payload.job.id, 2)


class TestRelease(RoutineTestCase):

    def test_end_process_clears_table_and_cpu(self):
        job = make_job(1, state=JobState.RUNNING)
        self.control.register_job(1, 25)
        self.control.add_eq(job)

        run(EventType.END_PROCESS, EndProcess(job), self.control)

        self.assertEqual(self.control.remaining_quantum(1), NOT_FOUND)
        self.assertTrue(self.control.eq_is_empty())
        self.assertEqual(self.pending(), [(IMMEDIATE, "free_cpu")])

    def test_free_cpu_tolerates_job_already_removed(self):
        run(EventType.FREE_CPU, FreeCPU(make_job(1, state=JobState.RUNNING)), self.control)

        event = self.only_event()
        self.assertEqual(event.name, "free_memory")
        self.assertEqual(event.payload.job.state, JobState.CPU_FREED)

    def test_free_memory_releases_segment(self):
        job = make_job(1, memory_size=40)
        self.control.allocate_memory(job, 40)

        run(EventType.FREE_MEMORY, FreeMemory(job), self.control)

        self.assertEqual(self.control.available_memory(), 128)
        event = self.only_event()
        self.assertEqual(event.name, "exit_system")
        self.assertEqual(event.payload.job.state, JobState.MEMORY_FREED)


class TestExitSystem(RoutineTestCase):

    def exit(self):
        run(EventType.EXIT_SYSTEM, ExitSystem(make_job(99, state=JobState.MEMORY_FREED)), self.control)

    def test_memory_wait_has_priority(self):
        self.control.add_maq(make_job(1))
        self.control.add_seq(make_job(2))
        self.exit()

        event = self.only_event()
        self.assertEqual((event.name, event.payload.job.id), ("request_memory", 1))
        self.assertEqual(self.control.snapshot()['seq'], [2])

    def test_admits_from_system_entry(self):
        self.control.add_seq(make_job(2, state=JobState.ARRIVED))
        self.control.add_caq(make_job(3))
        self.exit()

        event = self.only_event()
        self.assertEqual((event.name, event.payload.job.id), ("request_memory", 2))
        self.assertEqual(event.payload.job.state, JobState.ENTERED)
        self.assertEqual(self.control.snapshot()['caq'], [3])

    def test_resumes_job_waiting_for_cpu(self):
        self.control.add_caq(make_job(3))
        self.exit()

        event = self.only_event()
        self.assertEqual((event.name, event.payload.job.id), ("request_cpu", 3))

    def test_idle_when_nothing_waits(self):
        self.exit()
        self.assertFalse(self.control.has_events())


if __name__ == '__main__':
    unittest.main()
